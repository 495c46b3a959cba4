# app/core/config.py

import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL not set")

JWT_SECRET = os.getenv("JWT_SECRET")
if not JWT_SECRET:
    raise RuntimeError("JWT_SECRET not set")

JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
SESSION_EXPIRE_DAYS = int(os.getenv("SESSION_EXPIRE_DAYS", "7"))

ENV = os.getenv("ENV", "prod")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

# === Provider credentials
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
CLAUDE_API_KEY = os.getenv("CLAUDE_API_KEY", "")
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
DEEPSEEK_API_KEY = os.getenv("DEEPSEEK_API_KEY", "")

PROVIDER_KEYS = {
    "OPENAI_API_KEY": OPENAI_API_KEY,
    "CLAUDE_API_KEY": CLAUDE_API_KEY,
    "GEMINI_API_KEY": GEMINI_API_KEY,
    "DEEPSEEK_API_KEY": DEEPSEEK_API_KEY,
}

# === Models
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
CLAUDE_MODEL = os.getenv("CLAUDE_MODEL", "claude-3-haiku-20240307")
DEEPSEEK_MODEL = os.getenv("DEEPSEEK_MODEL", "deepseek-chat")
RANKING_MODEL = os.getenv("RANKING_MODEL", "gpt-4o")
CLARIFY_MODEL = os.getenv("CLARIFY_MODEL", CLAUDE_MODEL)

GEMINI_API_URL = os.getenv(
    "GEMINI_API_URL", "https://generativelanguage.googleapis.com/v1beta/models"
)
# OpenAI-compatible base URL
DEEPSEEK_API_URL = os.getenv("DEEPSEEK_API_URL", "https://api.deepseek.com")

PROVIDER_TIMEOUT_SECONDS = float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "60"))
GENERATION_MAX_TOKENS = int(os.getenv("GENERATION_MAX_TOKENS", "1500"))
CLARIFY_MAX_TOKENS = int(os.getenv("CLARIFY_MAX_TOKENS", "300"))

# === Rate limits (requests per window, per user)
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "3600"))
RATE_LIMITS = {
    "clarify": int(os.getenv("RATE_LIMIT_CLARIFY", "20")),
    "generate": int(os.getenv("RATE_LIMIT_GENERATE", "10")),
    "rank": int(os.getenv("RATE_LIMIT_RANK", "10")),
}


def missing_provider_keys() -> list[str]:
    return [name for name, value in PROVIDER_KEYS.items() if not value]

