import os
import warnings
from typing import Dict, Optional, Protocol, runtime_checkable

from litellm import acompletion, completion_cost

from ...utils.logger import get_logger
from ..settings.config import LLM_MAX_TOKENS, LLM_TIMEOUT_SECONDS
from .prompts import build_prompt_text

logger = get_logger(__name__)


PROVIDERS: Dict[str, tuple] = {
    "openai": ("OpenAI", None, "OPENAI_API_KEY"),
    "anthropic": ("Anthropic", None, "ANTHROPIC_API_KEY"),
    "openrouter": ("OpenRouter", None, "OPENROUTER_API_KEY"),
    "ollama": ("Ollama (Local)", "http://localhost:11434", None),
    "gemini": ("Google Gemini", None, "GEMINI_API_KEY"),
    "other": ("Other", None, None),
}


class TransformerError(Exception):
    """Raised when a text transformer cannot produce output."""


@runtime_checkable
class TextTransformer(Protocol):
    """
    Anything that rewrites text with a prompt template.

    ``transform`` substitutes ``{input}`` in the template itself and raises on
    failure; timeouts are the transformer's responsibility.
    """

    async def is_available(self) -> bool:
        ...

    async def transform(self, text: str, prompt_template: str) -> str:
        ...


class LLMTransformer:

    @staticmethod
    def format_model_name(model: str, provider: str) -> str:
        known_prefixes = (
            "openrouter/",
            "ollama/",
            "gemini/",
            "openai/",
            "anthropic/",
            "azure/",
            "huggingface/",
        )

        if model.startswith(known_prefixes):
            return model

        prefix_map = {
            "openrouter": "openrouter/",
            "ollama": "ollama/",
            "gemini": "gemini/",
        }

        prefix = prefix_map.get(provider)
        if prefix:
            return f"{prefix}{model}"

        return model

    def __init__(
        self,
        model: str = "gpt-5-nano",
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        max_tokens: int = LLM_MAX_TOKENS,
        timeout: float = LLM_TIMEOUT_SECONDS,
    ):
        self.model = model
        self.api_key = api_key
        self.api_base = api_base
        self.max_tokens = max_tokens
        self.timeout = timeout

        logger.info(
            f"LLMTransformer initialized with model: {model}, api_base: {api_base}"
        )

    async def is_available(self) -> bool:
        return self.is_configured()

    async def transform(self, text: str, prompt_template: str) -> str:
        if not text or not text.strip():
            return text

        prompt_text = build_prompt_text(text, prompt_template)
        logger.info(f"Sending {len(text)} chars to {self.model}")
        logger.debug(f"Prompt sent: {prompt_text!r}")

        kwargs = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt_text}],
            "max_tokens": self.max_tokens,
            "timeout": self.timeout,
        }

        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.api_base:
            kwargs["api_base"] = self.api_base

        try:
            response = await acompletion(**kwargs)
        except Exception as e:
            raise TransformerError(f"LLM request to {self.model} failed: {e}") from e

        try:
            choice = response.choices[0]
        except (AttributeError, IndexError) as e:
            raise TransformerError(f"No response choices from {self.model}") from e

        result_text = getattr(choice.message, "content", None) or getattr(choice, "text", None)
        if result_text is None:
            raise TransformerError(f"Empty response from {self.model}")

        try:
            with warnings.catch_warnings():
                warnings.filterwarnings(
                    "ignore",
                    message="Pydantic serializer warnings",
                    category=UserWarning,
                )
                cost = completion_cost(completion_response=response)
        except Exception:
            cost = None

        logger.info(
            f"Transform complete: {len(text)} -> {len(result_text)} chars, cost=${cost:.6f}"
            if cost
            else f"Transform complete: {len(text)} -> {len(result_text)} chars"
        )

        return result_text

    def is_configured(self) -> bool:
        if not self.model:
            return False

        if self.api_key:
            return True

        if self.model.startswith("ollama/"):
            return True

        env_vars = [
            "OPENAI_API_KEY",
            "ANTHROPIC_API_KEY",
            "AZURE_API_KEY",
            "GEMINI_API_KEY",
            "OPENROUTER_API_KEY",
        ]
        return any(os.environ.get(var) for var in env_vars)

