from __future__ import annotations
import json
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Float, Text, ForeignKey
from .db import Base


class Question(Base):
	__tablename__ = "questions"
	id = Column(Integer, primary_key=True, autoincrement=True)
	level = Column(Integer, default=1, nullable=False, index=True)
	# Hidden from clients; only sent to the model
	problem_statement = Column(Text, nullable=False)
	# Opaque string, may or may not be numeric
	correct_answer = Column(Text, nullable=False)
	tags_json = Column(Text, nullable=True)  # JSON list of tag ids
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

	@property
	def tags(self) -> list[str]:
		if not self.tags_json:
			return []
		try:
			return [str(t) for t in json.loads(self.tags_json)]
		except ValueError:
			return []


class Score(Base):
	__tablename__ = "scores"
	id = Column(Integer, primary_key=True, autoincrement=True)
	# Guest submissions have no user
	user_id = Column(Integer, nullable=True, index=True)
	question_id = Column(Integer, ForeignKey("questions.id"), nullable=False, index=True)
	prompt = Column(Text, nullable=False)
	ai_response = Column(Text, nullable=False)
	score = Column(Integer, nullable=False)
	model_vendor = Column(String(32), nullable=False)
	model_name = Column(String(128), nullable=True)
	answer_number = Column(Float, nullable=True)
	latency_ms = Column(Integer, default=0, nullable=False)
	evaluation_mode = Column(String(32), nullable=False)
	evaluation_detail = Column(Text, nullable=True)  # JSON string snapshot
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
