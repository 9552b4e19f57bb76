# tests/conftest.py
from __future__ import annotations

import copy
from typing import Callable, List

import pytest
from fastapi.testclient import TestClient

from docreview.main import app

SAMPLE_REVIEW = {
    "documentInfo": {
        "title": "Quarterly report",
        "overview": "One factual error and one punctuation suggestion.",
        "totalIssues": {"errors": 1, "warnings": 0, "suggestions": 1},
    },
    "reviewContent": [
        {
            "id": "p1",
            "originalText": "Revenue grew 5 percent in Q3.",
            "changes": [
                {
                    "type": "replace",
                    "position": {"start": 13, "end": 14},
                    "originalText": "5",
                    "newText": "15",
                    "explanation": "Figure disagrees with table 2.",
                    "severity": "error",
                    "category": "data",
                }
            ],
        },
        {
            "id": "p2",
            "originalText": "The team met all targets",
            "changes": [
                {
                    "type": "insert",
                    "position": {"start": 24, "end": 24},
                    "newText": ".",
                    "explanation": "Sentence lacks a full stop.",
                    "severity": "suggestion",
                    "category": "format",
                }
            ],
        },
        {"id": "p3", "originalText": "他说“你好”，然后离开。", "changes": []},
    ],
}


@pytest.fixture
def sample_review() -> dict:
    return copy.deepcopy(SAMPLE_REVIEW)


# --------------------------------------------------------------------
# FastAPI test client available as fixture `client`
# --------------------------------------------------------------------
@pytest.fixture(scope="session")
def client() -> TestClient:
    return TestClient(app)


# --------------------------------------------------------------------
# Never reach the real LLM provider during tests
# --------------------------------------------------------------------
@pytest.fixture(autouse=True)
def no_network(monkeypatch):
    from docreview.services import llm as llm_mod

    def _offline(messages):
        raise ConnectionError("network disabled in tests")

    monkeypatch.setattr(llm_mod, "_chat", _offline)
    monkeypatch.setattr(llm_mod.time, "sleep", lambda s: None)


@pytest.fixture
def fake_llm(monkeypatch) -> Callable[[str], List[dict]]:
    """Make request_review return a canned reply; returns the list of recorded calls."""
    from docreview.services import review as review_mod

    calls: List[dict] = []

    def _install(reply: str) -> List[dict]:
        def _fake(title, paragraphs, instructions=None):
            calls.append({"title": title, "paragraphs": list(paragraphs), "instructions": instructions})
            return reply

        monkeypatch.setattr(review_mod, "request_review", _fake)
        return calls

    return _install
