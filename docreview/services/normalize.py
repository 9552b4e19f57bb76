from typing import Any, Dict, List, Optional, Sequence

from docreview.core.config import DEFAULT_CATEGORY, FALLBACK_OVERVIEW, FALLBACK_TITLE
from docreview.models.review import (
    DocumentEditResult,
    DocumentInfo,
    ParagraphReview,
    TotalIssues,
)

# internal UI vocabulary
_TYPE_MAP = {"replace": "replace", "insert": "addition", "delete": "deletion"}
_SEVERITY_MAP = {"error": "error", "warning": "warning", "suggestion": "info"}


def normalize(result: DocumentEditResult) -> DocumentEditResult:
    """
    Fill soft-optional fields on an already validated result. Only fields on
    the allow-list are touched; everything else passes through unchanged.
    """
    paragraphs = []
    for paragraph in result.review_content:
        changes = tuple(
            c if c.category else c.model_copy(update={"category": DEFAULT_CATEGORY})
            for c in paragraph.changes
        )
        paragraphs.append(paragraph.model_copy(update={"changes": changes}))
    return result.model_copy(update={"review_content": tuple(paragraphs)})


def default_result(title: Optional[str] = None, paragraphs: Sequence[str] = ()) -> DocumentEditResult:
    """Placeholder a caller may show when the model output could not be decoded."""
    return DocumentEditResult(
        document_info=DocumentInfo(
            title=title or FALLBACK_TITLE,
            overview=FALLBACK_OVERVIEW,
            total_issues=TotalIssues(errors=0, warnings=0, suggestions=0),
        ),
        review_content=tuple(
            ParagraphReview(id=f"error-{i}", original_text=text, changes=())
            for i, text in enumerate(paragraphs)
        ),
    )


def to_review_paragraphs(result: DocumentEditResult) -> List[Dict[str, Any]]:
    """
    Flatten a decoded result into the per-paragraph structures the review UI
    works with: 1-based paragraph ids, ``addition``/``deletion`` change types
    and ``info`` in place of ``suggestion``.
    """
    out: List[Dict[str, Any]] = []
    for pi, paragraph in enumerate(result.review_content):
        out.append({
            "id": pi + 1,
            "text": paragraph.original_text,
            "changes": [
                {
                    "id": f"llm-change-{pi}-{ci}",
                    "type": _TYPE_MAP[c.type],
                    "position": {"start": c.position.start, "end": c.position.end},
                    "original": c.original_text or "",
                    "new": c.new_text or "",
                    "explanation": c.explanation or "No explanation provided",
                    "severity": _SEVERITY_MAP[c.severity],
                    "category": c.category or DEFAULT_CATEGORY,
                }
                for ci, c in enumerate(paragraph.changes)
            ],
        })
    return out
