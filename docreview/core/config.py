import os

MAX_BODY_BYTES = int(os.getenv("MAX_BODY_BYTES", str(2 * 1024 * 1024)))  # 2 MB soft cap

# LLM collaborator
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
LLM_MAX_RETRIES = int(os.getenv("LLM_MAX_RETRIES", "2"))
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "60"))
LLM_TEMPERATURE = 0.1

# Decoder
ATTEMPT_PREVIEW_CHARS = int(os.getenv("ATTEMPT_PREVIEW_CHARS", "500"))
DEFAULT_CATEGORY = os.getenv("DEFAULT_CATEGORY", "other")

# Placeholder shown when the model output could not be decoded
FALLBACK_TITLE = "Review unavailable"
FALLBACK_OVERVIEW = "The model response could not be decoded. Please retry the review."
