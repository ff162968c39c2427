import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_float(name: str, default: float | None) -> float | None:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return float(value)


@dataclass
class Config:
    """Configuration settings for the quiz generation pipeline"""

    # Anthropic API settings (blank key = deterministic fallback mode)
    ANTHROPIC_API_KEY: str = os.getenv("ANTHROPIC_API_KEY", "")
    ANTHROPIC_MODEL: str = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-20250514")
    MAX_TOKENS: int = int(os.getenv("MAX_TOKENS", "4096"))
    TEMPERATURE: float = float(os.getenv("TEMPERATURE", "0.4"))

    # Chunking settings
    CHUNK_SIZE: int = int(os.getenv("CHUNK_SIZE", "500"))  # Max characters per chunk
    CHUNK_OVERLAP: int = int(os.getenv("CHUNK_OVERLAP", "50"))  # Characters shared between chunks
    MAX_CONTEXT_CHUNKS: int = int(os.getenv("MAX_CONTEXT_CHUNKS", "0"))  # 0 = full context

    # Quiz settings
    MIN_QUESTIONS: int = 3
    MAX_QUESTIONS: int = 20
    PASSING_THRESHOLD: float = 70.0
    HISTORY_WINDOW: int = 5  # Recent results considered for initial difficulty
    VALIDATION_PASSES: int = 2  # Passed attempts needed to validate a course

    # Retry settings
    MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "3"))
    RETRY_INITIAL_DELAY: float = float(os.getenv("RETRY_INITIAL_DELAY", "5.0"))
    RETRY_MAX_TOTAL_DELAY: float | None = _env_float("RETRY_MAX_TOTAL_DELAY", None)


config = Config()
