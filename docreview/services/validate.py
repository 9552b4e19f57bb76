# docreview/services/validate.py
"""
Structural check of a parsed review payload.

The walk is top-down and stops at the first offending field, reporting its
dotted path (``reviewContent[2].changes[0].severity``) and the value found
there. Nothing is coerced; defaulting belongs to ``normalize``.
"""
from __future__ import annotations

from typing import Any, Dict

from docreview.models.review import CHANGE_TYPES, SEVERITIES, DocumentEditResult

_MISSING = object()
ROOT = "$"


class ValidationFailed(ValueError):
    def __init__(self, path: str, value: Any, reason: str):
        self.path = path
        self.value = None if value is _MISSING else value
        self.reason = reason
        super().__init__(f"{path}: {reason} (found {self.value!r})")


def _join(path: str, key: str) -> str:
    return key if path == ROOT else f"{path}.{key}"


def _field(obj: Dict[str, Any], path: str, key: str):
    value = obj.get(key, _MISSING)
    if value is _MISSING:
        raise ValidationFailed(_join(path, key), value, "missing")
    return value


def _object(value: Any, path: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValidationFailed(path, value, "expected object")
    return value


def _string(obj: Dict[str, Any], path: str, key: str, non_empty: bool = False) -> str:
    value = _field(obj, path, key)
    if not isinstance(value, str):
        raise ValidationFailed(_join(path, key), value, "expected string")
    if non_empty and not value.strip():
        raise ValidationFailed(_join(path, key), value, "expected non-empty string")
    return value


def _optional_string(obj: Dict[str, Any], path: str, key: str) -> None:
    value = obj.get(key)
    if value is not None and not isinstance(value, str):
        raise ValidationFailed(_join(path, key), value, "expected string")


def _count(obj: Dict[str, Any], path: str, key: str) -> int:
    value = _field(obj, path, key)
    # bool is an int subclass; JSON true is not a count
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationFailed(_join(path, key), value, "expected integer")
    if value < 0:
        raise ValidationFailed(_join(path, key), value, "expected integer >= 0")
    return value


def _array(obj: Dict[str, Any], path: str, key: str) -> list:
    value = _field(obj, path, key)
    if not isinstance(value, list):
        raise ValidationFailed(_join(path, key), value, "expected array")
    return value


def _choice(obj: Dict[str, Any], path: str, key: str, allowed) -> str:
    value = _field(obj, path, key)
    if not isinstance(value, str) or value not in allowed:
        raise ValidationFailed(_join(path, key), value, f"expected one of {', '.join(allowed)}")
    return value


def _check_document_info(root: Dict[str, Any]) -> None:
    path = "documentInfo"
    info = _object(_field(root, ROOT, path), path)
    _string(info, path, "title")
    _string(info, path, "overview")
    totals_path = f"{path}.totalIssues"
    totals = _object(_field(info, path, "totalIssues"), totals_path)
    for key in ("errors", "warnings", "suggestions"):
        _count(totals, totals_path, key)


def _check_change(change: Any, path: str, paragraph_len: int) -> None:
    change = _object(change, path)
    kind = _choice(change, path, "type", CHANGE_TYPES)

    pos_path = f"{path}.position"
    position = _object(_field(change, path, "position"), pos_path)
    start = _count(position, pos_path, "start")
    end = _count(position, pos_path, "end")
    if end > paragraph_len:
        raise ValidationFailed(f"{pos_path}.end", end, f"beyond paragraph length {paragraph_len}")
    if start > end:
        raise ValidationFailed(f"{pos_path}.start", start, "start after end")

    if kind in ("replace", "delete"):
        _string(change, path, "originalText", non_empty=True)
    else:
        _optional_string(change, path, "originalText")
    if kind in ("insert", "replace"):
        _string(change, path, "newText")
    else:
        _optional_string(change, path, "newText")

    _string(change, path, "explanation", non_empty=True)
    _choice(change, path, "severity", SEVERITIES)
    _optional_string(change, path, "category")


def _check_paragraph(paragraph: Any, path: str, seen: set) -> None:
    paragraph = _object(paragraph, path)
    pid = _string(paragraph, path, "id")
    if pid in seen:
        raise ValidationFailed(f"{path}.id", pid, "duplicate paragraph id")
    seen.add(pid)
    text = _string(paragraph, path, "originalText")
    for i, change in enumerate(_array(paragraph, path, "changes")):
        _check_change(change, f"{path}.changes[{i}]", len(text))


def check_review(data: Any) -> None:
    """Raise ValidationFailed at the first field that does not fit the schema."""
    root = _object(data, ROOT)
    _check_document_info(root)
    seen: set = set()
    for i, paragraph in enumerate(_array(root, ROOT, "reviewContent")):
        _check_paragraph(paragraph, f"reviewContent[{i}]", seen)


def validate_review(data: Any) -> DocumentEditResult:
    check_review(data)
    return DocumentEditResult.model_validate(data)
