# tests/test_review.py
import json

import pytest

from docreview.core import config
from docreview.models.errors import NoJsonObjectFound, SchemaInvalid
from docreview.services import llm
from docreview.services.normalize import default_result, normalize, to_review_paragraphs
from docreview.services.review import review_document
from docreview.services.validate import validate_review

PARAGRAPHS = [
    "Revenue grew 5 percent in Q3.",
    "The team met all targets",
    "他说“你好”，然后离开。",
]


def test_review_document_decodes_reply(fake_llm, sample_review):
    calls = fake_llm("```json\n" + json.dumps(sample_review, ensure_ascii=False) + "\n```")
    outcome = review_document("Quarterly report", PARAGRAPHS, instructions="Check the figures.")
    assert outcome.error is None
    assert outcome.result.to_dict() == sample_review
    assert [p["id"] for p in outcome.paragraphs] == [1, 2, 3]
    assert calls == [{"title": "Quarterly report", "paragraphs": PARAGRAPHS, "instructions": "Check the figures."}]


def test_review_document_falls_back_on_garbage(fake_llm):
    fake_llm("Sorry, I can't help with that.")
    outcome = review_document("Quarterly report", PARAGRAPHS)
    assert isinstance(outcome.error, NoJsonObjectFound)
    assert outcome.result.document_info.title == "Quarterly report"
    assert outcome.result.document_info.overview == config.FALLBACK_OVERVIEW
    assert [p.id for p in outcome.result.review_content] == ["error-0", "error-1", "error-2"]
    assert [p["text"] for p in outcome.paragraphs] == PARAGRAPHS
    assert all(p["changes"] == [] for p in outcome.paragraphs)


def test_review_document_reports_schema_error(fake_llm, sample_review):
    sample_review["reviewContent"][0]["changes"][0]["type"] = "rewrite"
    fake_llm(json.dumps(sample_review))
    outcome = review_document("Quarterly report", PARAGRAPHS)
    assert isinstance(outcome.error, SchemaInvalid)
    assert outcome.error.path == "reviewContent[0].changes[0].type"
    assert len(outcome.paragraphs) == len(PARAGRAPHS)


# --------------------------------------------------------------------
# normalization and conversion
# --------------------------------------------------------------------
def test_normalize_fills_only_missing_category(sample_review):
    del sample_review["reviewContent"][1]["changes"][0]["category"]
    result = normalize(validate_review(sample_review))
    assert result.review_content[0].changes[0].category == "data"
    assert result.review_content[1].changes[0].category == config.DEFAULT_CATEGORY
    assert result.review_content[1].changes[0].original_text is None


def test_normalize_is_idempotent(sample_review):
    once = normalize(validate_review(sample_review))
    assert normalize(once) == once


def test_default_result_without_title():
    result = default_result()
    assert result.document_info.title == config.FALLBACK_TITLE
    assert result.document_info.total_issues.errors == 0
    assert result.review_content == ()


def test_to_review_paragraphs_maps_vocabulary(sample_review):
    out = to_review_paragraphs(validate_review(sample_review))
    replace = out[0]["changes"][0]
    assert replace == {
        "id": "llm-change-0-0",
        "type": "replace",
        "position": {"start": 13, "end": 14},
        "original": "5",
        "new": "15",
        "explanation": "Figure disagrees with table 2.",
        "severity": "error",
        "category": "data",
    }
    insert = out[1]["changes"][0]
    assert (insert["id"], insert["type"], insert["severity"]) == ("llm-change-1-0", "addition", "info")
    assert insert["original"] == ""
    assert out[2] == {"id": 3, "text": "他说“你好”，然后离开。", "changes": []}


def test_to_review_paragraphs_delete(sample_review):
    sample_review["reviewContent"][0]["changes"][0] = {
        "type": "delete",
        "position": {"start": 0, "end": 8},
        "originalText": "Revenue ",
        "explanation": "Redundant word.",
        "severity": "warning",
    }
    change = to_review_paragraphs(validate_review(sample_review))[0]["changes"][0]
    assert change["type"] == "deletion"
    assert change["new"] == ""
    assert change["category"] == config.DEFAULT_CATEGORY


# --------------------------------------------------------------------
# LLM request loop
# --------------------------------------------------------------------
def test_request_review_retries_then_succeeds(monkeypatch):
    seen = []

    def _flaky(messages):
        seen.append(messages)
        if len(seen) < 2:
            raise TimeoutError("slow provider")
        return '{"ok": true}'

    monkeypatch.setattr(llm, "_chat", _flaky)
    assert llm.request_review("T", ["one", "two"], max_retries=2) == '{"ok": true}'
    assert len(seen) == 2
    payload = json.loads(seen[0][1]["content"])
    assert payload == {"title": "T", "paragraphs": [{"id": "0", "text": "one"}, {"id": "1", "text": "two"}]}
    assert seen[0][0]["role"] == "system"


def test_request_review_passes_instructions(monkeypatch):
    seen = []
    monkeypatch.setattr(llm, "_chat", lambda messages: seen.append(messages) or "{}")
    llm.request_review("T", ["one"], instructions="Be strict.")
    assert json.loads(seen[0][1]["content"])["instructions"] == "Be strict."


def test_request_review_gives_up(monkeypatch):
    attempts = []
    sleeps = []

    def _down(messages):
        attempts.append(1)
        raise ConnectionError("provider down")

    monkeypatch.setattr(llm, "_chat", _down)
    monkeypatch.setattr(llm.time, "sleep", sleeps.append)
    with pytest.raises(RuntimeError, match="provider down"):
        llm.request_review("T", ["one"], max_retries=2)
    assert len(attempts) == 3
    assert sleeps == [1.0, 1.75]


def test_default_result_serializes_zero_totals():
    out = default_result("T", ["a"]).to_dict()
    assert out["documentInfo"]["totalIssues"] == {"errors": 0, "warnings": 0, "suggestions": 0}
    assert out["reviewContent"] == [{"id": "error-0", "originalText": "a", "changes": []}]
