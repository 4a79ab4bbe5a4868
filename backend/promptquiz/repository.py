from __future__ import annotations
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .models import Question, Score

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
	pass


class ScoreRecord(BaseModel):
	user_id: Optional[int] = None
	question_id: int
	prompt: str
	ai_response: str
	score: int
	model_vendor: str
	model_name: Optional[str] = None
	answer_number: Optional[float] = None
	latency_ms: int = 0
	evaluation_mode: str
	evaluation_detail: Optional[Dict[str, Any]] = None


class QuestionsRepository:
	def __init__(self, db: Session) -> None:
		self.db = db

	def list_questions(self) -> List[Question]:
		try:
			return list(self.db.scalars(select(Question).order_by(Question.level, Question.id)))
		except SQLAlchemyError as err:
			raise RepositoryError(f"failed to list questions: {err}") from err

	def get(self, question_id: int) -> Optional[Question]:
		try:
			return self.db.get(Question, question_id)
		except SQLAlchemyError as err:
			raise RepositoryError(f"failed to load question {question_id}: {err}") from err

	def get_correct_answer(self, question_id: int) -> Optional[str]:
		question = self.get(question_id)
		return None if question is None else question.correct_answer


class ScoresRepository:
	def __init__(self, db: Session) -> None:
		self.db = db

	def create(self, record: ScoreRecord) -> Score:
		detail_json = None
		if record.evaluation_detail is not None:
			try:
				detail_json = json.dumps(record.evaluation_detail, ensure_ascii=False)
			except (TypeError, ValueError) as err:
				raise RepositoryError(f"failed to serialize evaluation_detail: {err}") from err
		row = Score(
			user_id=record.user_id,
			question_id=record.question_id,
			prompt=record.prompt,
			ai_response=record.ai_response,
			score=record.score,
			model_vendor=record.model_vendor,
			model_name=record.model_name,
			answer_number=record.answer_number,
			latency_ms=record.latency_ms,
			evaluation_mode=record.evaluation_mode,
			evaluation_detail=detail_json,
			created_at=datetime.utcnow(),
		)
		try:
			self.db.add(row)
			self.db.commit()
			self.db.refresh(row)
		except SQLAlchemyError as err:
			self.db.rollback()
			raise RepositoryError(f"failed to insert score: {err}") from err
		logger.debug("saved score id=%s question_id=%s score=%s", row.id, row.question_id, row.score)
		return row
