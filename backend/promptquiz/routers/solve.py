from __future__ import annotations
import logging
import re
import time
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import get_db
from ..evaluator import ScoringConfig, evaluate
from ..gemini_client import GeminiClient, GeminiError, GeminiErrorKind
from ..repository import QuestionsRepository, RepositoryError, ScoreRecord, ScoresRepository
from ..settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["solve"])

MODEL_VENDOR = "gemini"

_FINAL_ANSWER_MARKER = re.compile(r"final answer\s*[:：]", re.IGNORECASE)


class SolveRequest(BaseModel):
	question_id: int
	prompt: str
	model: Optional[str] = None


class SolveResponse(BaseModel):
	question_id: int
	prompt: str
	model_vendor: str
	model_name: str
	# Only the part after the final-answer marker, so the hidden problem stays hidden
	ai_output: str
	answer_number: Optional[float] = None
	score: int
	evaluation: Dict[str, Any]
	elapsed_ms: int
	# False when persisting failed; the score is still returned
	saved: bool


def get_gemini_client(request: Request) -> GeminiClient:
	client = getattr(request.app.state, "gemini_client", None)
	if client is None:
		raise HTTPException(
			status_code=503,
			detail={"error": "ai_unavailable", "message": "GEMINI_API_KEY is not configured"},
		)
	return client


def get_scoring_config() -> ScoringConfig:
	return ScoringConfig(
		curvature=settings.scoring_curvature,
		integer_base_error=settings.scoring_integer_base_error,
		sub_unit_base_error=settings.scoring_sub_unit_base_error,
		reference_relative_error=settings.scoring_reference_relative_error,
		tolerance_floor=settings.scoring_tolerance_floor,
		integer_scale_threshold=settings.scoring_integer_scale_threshold,
	)


def build_combined_prompt(problem_statement: str, user_prompt: str) -> str:
	return (
		"Answer the following problem by following the user's instructions.\n\n"
		f"[Problem]\n{problem_statement}\n\n"
		f"[User instructions]\n{user_prompt}\n\n"
		"[Important] End your reply with \"Final answer: \" followed by the answer."
	)


def extract_final_answer(full_response: str) -> str:
	match = _FINAL_ANSWER_MARKER.search(full_response)
	if match is None:
		return full_response
	return full_response[match.end():].strip()


def _ai_error_status(err: GeminiError) -> int:
	if err.kind == GeminiErrorKind.CLIENT_ERROR:
		return 400
	if err.kind == GeminiErrorKind.UNAUTHORIZED:
		return 401
	return 502


@router.post("/solve", response_model=SolveResponse)
async def solve(
	req: SolveRequest,
	db: Session = Depends(get_db),
	client: GeminiClient = Depends(get_gemini_client),
	scoring: ScoringConfig = Depends(get_scoring_config),
):
	if not req.prompt.strip():
		raise HTTPException(status_code=400, detail={"error": "invalid_prompt", "message": "prompt is empty"})
	if len(req.prompt) > settings.prompt_max_length:
		raise HTTPException(
			status_code=400,
			detail={
				"error": "prompt_too_long",
				"message": f"prompt is too long (max {settings.prompt_max_length} characters)",
			},
		)
	model_name = req.model or settings.gemini_model

	try:
		question = QuestionsRepository(db).get(req.question_id)
	except RepositoryError as err:
		logger.error("question lookup failed: %s", err)
		raise HTTPException(status_code=500, detail={"error": "database_error", "message": "failed to load question"})
	if question is None:
		raise HTTPException(status_code=404, detail={"error": "question_not_found", "message": "question not found"})

	combined = build_combined_prompt(question.problem_statement, req.prompt)
	logger.debug("solve question_id=%s model=%s combined prompt:\n%s", req.question_id, model_name, combined)

	started = time.perf_counter()
	try:
		generation = await client.generate(combined, model=model_name)
	except GeminiError as err:
		logger.warning("Gemini call failed (%s): %s", err.kind.value, err)
		raise HTTPException(
			status_code=_ai_error_status(err),
			detail={"error": "ai_error", "message": "failed to get a response from the model", "reason": str(err)},
		)
	elapsed_ms = int((time.perf_counter() - started) * 1000)

	# Score the full output; only the final answer is shown to the player
	full_text = generation.text
	result = evaluate(full_text, question.correct_answer, scoring)
	detail = result.detail.to_dict()

	saved = True
	try:
		ScoresRepository(db).create(
			ScoreRecord(
				question_id=req.question_id,
				prompt=req.prompt,
				ai_response=full_text,
				score=result.score,
				model_vendor=MODEL_VENDOR,
				model_name=model_name,
				answer_number=result.extracted_value,
				latency_ms=elapsed_ms,
				evaluation_mode=result.mode.value,
				evaluation_detail=detail,
			)
		)
	except RepositoryError as err:
		logger.error("score save failed: %s", err)
		saved = False

	return SolveResponse(
		question_id=req.question_id,
		prompt=req.prompt,
		model_vendor=MODEL_VENDOR,
		model_name=model_name,
		ai_output=extract_final_answer(full_text),
		answer_number=result.extracted_value,
		score=result.score,
		evaluation={"mode": result.mode.value, "detail": detail},
		elapsed_ms=elapsed_ms,
		saved=saved,
	)
