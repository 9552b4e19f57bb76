# docreview/services/review.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from docreview.models.errors import DecodeError
from docreview.models.review import DocumentEditResult
from docreview.services.decode import decode, is_error
from docreview.services.llm import request_review
from docreview.services.normalize import default_result, to_review_paragraphs

log = logging.getLogger("review")


class ReviewOutcome(NamedTuple):
    result: DocumentEditResult
    paragraphs: List[Dict[str, Any]]
    error: Optional[DecodeError] = None


def review_document(
    title: str,
    paragraphs: Sequence[str],
    instructions: Optional[str] = None,
) -> ReviewOutcome:
    """
    Request a review and decode it. When the reply cannot be decoded the
    placeholder result is returned alongside the error instead.
    """
    raw = request_review(title, paragraphs, instructions)
    decoded = decode(raw)
    if is_error(decoded):
        log.warning("Falling back to placeholder review for %r: %s", title, decoded.describe())
        result = default_result(title, paragraphs)
        return ReviewOutcome(result, to_review_paragraphs(result), decoded)

    log.info(
        "Decoded review for %r: %d paragraphs, %d changes",
        title,
        len(decoded.review_content),
        sum(len(p.changes) for p in decoded.review_content),
    )
    return ReviewOutcome(decoded, to_review_paragraphs(decoded))
