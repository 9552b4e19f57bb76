# docreview/services/llm.py
import json
import logging
import threading
import time
from typing import Any, Dict, List, Optional, Sequence

from openai import OpenAI

from docreview.core.config import LLM_MAX_RETRIES, LLM_TEMPERATURE, LLM_TIMEOUT, OPENAI_MODEL

log = logging.getLogger("llm")

SYSTEM = (
    "You are a meticulous document reviewer.\n"
    "Return ONLY JSON with this exact shape:\n"
    '{"documentInfo":{"title":str,"overview":str,'
    '"totalIssues":{"errors":int,"warnings":int,"suggestions":int}},'
    '"reviewContent":[{"id":str,"originalText":str,"changes":[{'
    '"type":"replace"|"insert"|"delete","position":{"start":int,"end":int},'
    '"originalText":str,"newText":str,"explanation":str,'
    '"severity":"error"|"warning"|"suggestion","category":str}]}]}\n'
    "One reviewContent entry per input paragraph, in order. No prose, no markdown."
)

# one request in flight at a time
_LOCK = threading.Lock()

_client: Optional[OpenAI] = None


def client() -> OpenAI:
    global _client
    if _client is None:
        # retries are handled here so the SDK's own are disabled
        _client = OpenAI(timeout=LLM_TIMEOUT, max_retries=0)
    return _client


def _chat(messages: List[Dict[str, Any]]) -> str:
    """Single call to OpenAI Chat Completions."""
    log.info("LLM chat call model=%s, messages=%d", OPENAI_MODEL, len(messages))
    resp = client().chat.completions.create(
        model=OPENAI_MODEL,
        messages=messages,
        temperature=LLM_TEMPERATURE,
    )
    return resp.choices[0].message.content or ""


def request_review(
    title: str,
    paragraphs: Sequence[str],
    instructions: Optional[str] = None,
    max_retries: int = LLM_MAX_RETRIES,
) -> str:
    """
    Ask the model to review ``paragraphs`` and return its raw reply text.
    Decoding the reply is the caller's job.
    """
    payload = {
        "title": title,
        "paragraphs": [{"id": str(i), "text": p} for i, p in enumerate(paragraphs)],
    }
    if instructions:
        payload["instructions"] = instructions
    messages = [
        {"role": "system", "content": SYSTEM},
        {"role": "user", "content": json.dumps(payload, ensure_ascii=False)},
    ]

    last_err: Optional[Exception] = None
    with _LOCK:
        for attempt in range(max_retries + 1):
            try:
                return _chat(messages)
            except Exception as e:
                last_err = e
                log.warning("LLM call failed (attempt %d/%d): %s", attempt + 1, max_retries + 1, e)
                if attempt < max_retries:
                    time.sleep(1.0 + 0.75 * attempt)
    raise RuntimeError(f"LLM review failed: {last_err}")
