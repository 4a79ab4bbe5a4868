"""Shared fixtures: in-memory database and a scripted Gemini client."""

from __future__ import annotations

import json
from typing import Any, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from promptquiz.db import get_db, init_db
from promptquiz.gemini_client import GenerationResult
from promptquiz.main import app
from promptquiz.models import Question
from promptquiz.routers.solve import get_gemini_client


class FakeGeminiClient:
    """Returns queued texts (or raises queued exceptions) and records calls."""

    def __init__(self) -> None:
        self.outputs: list[Any] = []
        self.calls: list[dict[str, Any]] = []

    async def generate(self, prompt: str, *, model: str | None = None) -> GenerationResult:
        self.calls.append({"prompt": prompt, "model": model})
        item = self.outputs.pop(0)
        if isinstance(item, Exception):
            raise item
        return GenerationResult(text=item, latency=0.01)


@pytest.fixture()
def session_factory() -> Iterator[sessionmaker]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    init_db(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
    yield factory
    engine.dispose()


@pytest.fixture()
def db(session_factory: sessionmaker) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def questions(db: Session) -> list[Question]:
    rows = [
        Question(level=2, problem_statement="How many r's are in 'strawberry'?", correct_answer="3",
                 tags_json=json.dumps(["character_counting"])),
        Question(level=1, problem_statement="What is 7 + 5?", correct_answer="12",
                 tags_json=json.dumps(["calculation"])),
        Question(level=3, problem_statement="Name the capital of France.", correct_answer="Paris"),
    ]
    db.add_all(rows)
    db.commit()
    for row in rows:
        db.refresh(row)
    return rows


@pytest.fixture()
def fake_gemini() -> FakeGeminiClient:
    return FakeGeminiClient()


@pytest.fixture()
def client(session_factory: sessionmaker, fake_gemini: FakeGeminiClient) -> Iterator[TestClient]:
    def _get_db() -> Iterator[Session]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_gemini_client] = lambda: fake_gemini
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
