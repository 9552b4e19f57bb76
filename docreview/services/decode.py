# docreview/services/decode.py
import json
import logging
from typing import Any, Optional, Tuple, Union

from docreview.core.config import ATTEMPT_PREVIEW_CHARS
from docreview.models.errors import (
    DECODE_ERROR_TYPES,
    DecodeError,
    NoJsonObjectFound,
    SchemaInvalid,
    Unparseable,
)
from docreview.models.review import DocumentEditResult
from docreview.services import sanitize
from docreview.services.normalize import normalize
from docreview.services.validate import ValidationFailed, validate_review

log = logging.getLogger("decode")


def _preview(text: str) -> str:
    if len(text) <= ATTEMPT_PREVIEW_CHARS:
        return text
    return text[:ATTEMPT_PREVIEW_CHARS] + "…"


def _parse(text: str) -> Tuple[Any, Optional[str]]:
    try:
        return json.loads(text), None
    except (ValueError, RecursionError) as e:
        return None, str(e) or type(e).__name__


def _attempt(text: str) -> Union[DocumentEditResult, DecodeError]:
    data, err = _parse(text)
    if err is not None:
        return Unparseable(attempted_text=_preview(text), parse_message=err)
    try:
        return validate_review(data)
    except ValidationFailed as e:
        return SchemaInvalid(path=e.path, found_value=e.value, reason=e.reason)


def is_error(value: Any) -> bool:
    return isinstance(value, DECODE_ERROR_TYPES)


def decode(raw: str, logger: Optional[logging.Logger] = None) -> Union[DocumentEditResult, DecodeError]:
    """
    Turn raw model output into a validated, normalized DocumentEditResult.

    At most two attempts: the conservative cleanup, then the aggressive
    repair layered on top of it. Failures come back as DecodeError values,
    this function does not raise.
    """
    logger = logger or log
    if sanitize.find_object_bounds(raw) is None:
        logger.warning("No JSON object in model output (%d chars)", len(raw))
        return NoJsonObjectFound()

    first = sanitize.conservative(raw, logger)
    outcome = _attempt(first)
    if not is_error(outcome):
        return normalize(outcome)
    logger.info("First decode attempt failed: %s", outcome.describe())

    second = sanitize.aggressive(first, logger)
    outcome = _attempt(second)
    if is_error(outcome):
        logger.warning("Decode failed after repair: %s", outcome.describe())
        return outcome
    return normalize(outcome)
