import logging
import random
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from ..usage import Usage, UsageAccumulator

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Raised when all model retries are exhausted."""


@dataclass
class ToolCall:
    """A tool invocation requested by the model."""
    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)


@dataclass
class ModelResponse:
    """One model round: narrative text, requested tool calls, priced usage."""
    text: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    usage: Usage = field(default_factory=Usage)
    stop_reason: str = ""


class ModelClient(ABC):
    """Model conversation capability with retry and usage accounting.

    Each instance owns a :class:`~remote_coder.usage.UsageAccumulator`;
    every successful round is recorded there before it is returned.
    """

    def __init__(self, model: str, max_retries: int = 3, retry_delay: float = 2.0,
                 pricing: Optional[dict] = None):
        self.model = model
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.usage = UsageAccumulator(model, pricing)

    # ── Public entry point ──

    def send(self, messages: list[dict], system_prompt: str, context: str,
             tools: Optional[list[dict]] = None) -> ModelResponse:
        """Run one model round with automatic retry and exponential backoff.

        Raises :class:`LLMError` after all retries are exhausted or on a
        non-retryable failure.
        """
        last_error: Exception | None = None
        attempts = 0

        for attempt in range(1, self.max_retries + 1):
            attempts = attempt
            try:
                response = self._send(messages, system_prompt, context, tools or [])
            except LLMError:
                raise
            except Exception as e:
                last_error = e
                logger.warning(
                    f"[LLM] Error on attempt {attempt}/{self.max_retries}: {e}")
                if not self._is_retryable(e):
                    break

                if attempt < self.max_retries:
                    # Jittered exponential backoff
                    wait = self.retry_delay * (2 ** (attempt - 1))
                    jitter = wait * 0.1 * random.random()

                    # Special handling for 429: wait longer
                    if "429" in str(e):
                        wait *= 2
                        logger.info(f"[LLM] Rate limit detected (429). Backing off for {wait:.1f}s")

                    time.sleep(wait + jitter)
                continue

            response.usage = self.usage.record(response.usage)
            return response

        raise LLMError(
            f"LLM failed after {attempts} attempt(s): {last_error}")

    # ── Subclass hooks ──

    def _is_retryable(self, error: Exception) -> bool:
        return True

    @abstractmethod
    def _send(self, messages: list[dict], system_prompt: str, context: str,
              tools: list[dict]) -> ModelResponse:
        """One request/response exchange; ``usage`` is left unpriced."""
