from __future__ import annotations
import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import get_db
from ..repository import QuestionsRepository, RepositoryError
from ..tags import Tag, all_tags

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["questions"])


class QuestionResponse(BaseModel):
	# Problem statement and correct answer are never exposed
	id: int
	level: int
	tags: List[str]
	created_at: datetime


@router.get("/questions", response_model=List[QuestionResponse])
def list_questions(db: Session = Depends(get_db)):
	try:
		rows = QuestionsRepository(db).list_questions()
	except RepositoryError as err:
		logger.error("question query failed: %s", err)
		raise HTTPException(
			status_code=500,
			detail={"error": "database_error", "message": "failed to load questions"},
		)
	return [QuestionResponse(id=q.id, level=q.level, tags=q.tags, created_at=q.created_at) for q in rows]


@router.get("/tags", response_model=List[Tag])
def list_tags():
	return all_tags()
