import os
from dotenv import load_dotenv

load_dotenv()

# API Keys and Config - loaded from .env
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")

# "gemini" or "openai" - backend for concept planning and reference summaries
TEXT_PROVIDER = os.getenv("TEXT_PROVIDER", "gemini")

# Models
GEMINI_TEXT_MODEL = os.getenv("GEMINI_TEXT_MODEL", "gemini-3-flash-preview")
GEMINI_IMAGE_MODEL = os.getenv("GEMINI_IMAGE_MODEL", "gemini-3-pro-image-preview")
GEMINI_DRAFT_MODEL = os.getenv("GEMINI_DRAFT_MODEL", "imagen-4.0-generate-001")
OPENAI_TEXT_MODEL = os.getenv("OPENAI_TEXT_MODEL", "gpt-5.2")

# Transient provider errors (rate limit / overloaded) are retried inside one call
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "5"))
RETRY_CODES = (503, 429)

# Automatic tool-call rounds allowed per assistant user turn
MAX_ASSISTANT_ROUNDS = int(os.getenv("MAX_ASSISTANT_ROUNDS", "5"))

# Aspect ratios supported by both image models
SUPPORTED_RATIOS = ("1:1", "3:4", "4:3", "9:16", "16:9")

# Brief form values
OBJECTIVES = ("Increase sales", "Generate leads", "Improve brand awareness")
DEFAULT_OBJECTIVE = OBJECTIVES[0]
DEFAULT_RATIOS = ("3:4",)
DEFAULT_QUALITY = "low"
DEFAULT_CREATIVE_COUNT = 3

# Quality tier -> Gemini image_size
IMAGE_SIZES = {
    "low": "1K",
    "medium": "2K",
    "high": "4K",
}

# Estimated USD cost per successful call
COST_DRAFT = 0.04
COST_FINAL = {
    "low": 0.14,
    "medium": 0.14,
    "high": 0.24,
}
COST_EDIT = COST_FINAL
