from .base import ModelClient, ModelResponse, ToolCall, LLMError
from .anthropic_client import AnthropicClient, create_client
