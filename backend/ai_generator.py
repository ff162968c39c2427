import logging

import anthropic

from errors import GenerationError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 529}
RETRYABLE_MARKERS = ("429", "rate", "quota", "resource_exhausted", "overloaded")


def is_retryable_error(error: Exception) -> bool:
    """Rate-limit and quota exhaustion are worth retrying; everything else is fatal."""
    if isinstance(error, anthropic.RateLimitError):
        return True
    status_code = getattr(error, "status_code", None)
    if status_code in RETRYABLE_STATUS_CODES:
        return True
    message = str(error).lower()
    return any(marker in message for marker in RETRYABLE_MARKERS)


class AIGenerator:
    """Handles interactions with Anthropic's Claude API for raw text generation"""

    # Static system prompt to avoid rebuilding on each call
    SYSTEM_PROMPT = """You are an expert educational assistant that writes quizzes, feedback and study material strictly from supplied course content.

Output rules:
- When asked for JSON, respond with the JSON document only
- No markdown fences, no commentary before or after the payload
- Never introduce facts that are not present in the supplied content
"""

    def __init__(
        self,
        api_key: str | None,
        model: str,
        max_tokens: int = 4096,
        temperature: float = 0.4,
    ):
        self.model = model
        self.client = anthropic.Anthropic(api_key=api_key) if api_key and api_key.strip() else None

        # Pre-build base API parameters
        self.base_params = {"model": self.model, "temperature": temperature, "max_tokens": max_tokens}

    @property
    def is_available(self) -> bool:
        """False when no API key is configured (deterministic fallback mode)."""
        return self.client is not None

    def generate(self, prompt: str, system: str | None = None) -> str:
        """
        Send a single prompt and return the model's text.

        Args:
            prompt: The user-turn instruction
            system: Optional system prompt override

        Returns:
            Concatenated text blocks of the response

        Raises:
            GenerationError: on any failure; `retryable` is set for rate-limit/quota errors
        """
        if self.client is None:
            raise GenerationError("Generation client is not configured", retryable=False)

        api_params = {
            **self.base_params,
            "messages": [{"role": "user", "content": prompt}],
            "system": system or self.SYSTEM_PROMPT,
        }

        try:
            response = self.client.messages.create(**api_params)
        except Exception as e:
            retryable = is_retryable_error(e)
            if retryable:
                logger.warning("Claude API call rate limited: %s", e)
            else:
                logger.error("Claude API call failed: %s", e)
            raise GenerationError(str(e) or type(e).__name__, retryable=retryable) from e

        text = "".join(
            block.text for block in (response.content or []) if getattr(block, "type", None) == "text"
        )
        if not text.strip():
            raise GenerationError("Empty response from Claude API", retryable=False)

        logger.info("Received Claude response (%d chars)", len(text))
        return text

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
