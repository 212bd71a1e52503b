"""
Anthropic Claude client — calls the Anthropic Messages API directly.

The assembled code context goes into the system prompt as its own block
marked for prompt caching, so follow-up rounds in a turn read it from cache.
"""

import logging
from typing import Optional

import requests

from ..usage import Usage
from .base import ModelClient, ModelResponse, ToolCall

logger = logging.getLogger(__name__)


class AnthropicClient(ModelClient):

    ANTHROPIC_VERSION = "2023-06-01"

    def __init__(self, base_url: str, model: str, api_key: str,
                 max_tokens: int = 8192, timeout: tuple = (10, 300), **kwargs):
        super().__init__(model, **kwargs)
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.max_tokens = max_tokens
        self.timeout = timeout

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": self.ANTHROPIC_VERSION,
        }

    def build_payload(self, messages: list[dict], system_prompt: str, context: str,
                      tools: list[dict]) -> dict:
        system = [{"type": "text", "text": system_prompt}]
        if context:
            system.append({
                "type": "text",
                "text": context,
                "cache_control": {"type": "ephemeral"},
            })
        payload = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": system,
            "messages": [
                {"role": m["role"], "content": m["content"]} for m in messages
            ],
        }
        if tools:
            payload["tools"] = tools
        return payload

    def _is_retryable(self, error: Exception) -> bool:
        # Bad requests and auth failures will not fix themselves
        if isinstance(error, requests.HTTPError) and error.response is not None:
            status = error.response.status_code
            return status in (408, 429) or status >= 500
        return True

    def _send(self, messages: list[dict], system_prompt: str, context: str,
              tools: list[dict]) -> ModelResponse:
        payload = self.build_payload(messages, system_prompt, context, tools)
        logger.debug(f"[Anthropic] Sending {len(messages)} message(s), "
                     f"{len(context)} context chars, {len(tools)} tool(s)")

        url = f"{self.base_url}/messages"
        response = requests.post(url, headers=self._headers(), json=payload,
                                 timeout=self.timeout)
        response.raise_for_status()
        return self.parse_response(response.json())

    @staticmethod
    def parse_response(data: dict) -> ModelResponse:
        """Split content blocks into narrative text and tool calls."""
        text_parts: list[str] = []
        tool_calls: list[ToolCall] = []
        for block in data.get("content", []):
            block_type = block.get("type")
            if block_type == "text":
                text_parts.append(block.get("text", ""))
            elif block_type == "tool_use":
                tool_calls.append(ToolCall(
                    id=block.get("id", ""),
                    name=block.get("name", ""),
                    input=block.get("input") or {},
                ))

        usage = Usage.from_api(data.get("usage"))
        logger.debug(f"[Anthropic] Usage: in={usage.input_tokens} out={usage.output_tokens} "
                     f"cache_read={usage.cache_read_tokens} cache_write={usage.cache_write_tokens}")
        return ModelResponse(
            text="".join(text_parts),
            tool_calls=tool_calls,
            usage=usage,
            stop_reason=data.get("stop_reason") or "",
        )


def create_client(cfg, model: Optional[str] = None) -> AnthropicClient:
    """Build a client from a :class:`~remote_coder.config.Config`."""
    return AnthropicClient(
        base_url=cfg.ANTHROPIC_BASE_URL,
        model=model or cfg.DEFAULT_MODEL,
        api_key=cfg.ANTHROPIC_API_KEY,
        max_tokens=cfg.MAX_TOKENS,
        max_retries=cfg.LLM_MAX_RETRIES,
        retry_delay=cfg.LLM_RETRY_DELAY,
        pricing=cfg.PRICING,
    )
