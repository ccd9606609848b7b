"""Text-generation service backed by DSPy's language-model client."""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Optional

try:  # pragma: no cover - optional dependency
    import dspy  # type: ignore
except ImportError:  # pragma: no cover - executed when DSPy absent
    dspy = None  # type: ignore[assignment]

from namewise.config.models import LLMSettings

from .base import GenerationRequest, GenerationResponse, ProviderCapabilities, TokenUsage
from .errors import ProviderAuthFailure

LOGGER = logging.getLogger(__name__)

_VISION_PROVIDERS = frozenset({"openai", "anthropic", "gemini", "google"})


class DSPyTextService:
    """Send naming prompts through ``dspy.LM``.

    One ``dspy.LM`` client is created per model name on first use so the
    cheap and premium stages can share a single service instance.
    """

    def __init__(self, settings: Optional[LLMSettings] = None) -> None:
        """Validate settings and prepare the client factory.

        Args:
            settings: LLM configuration; defaults to :class:`LLMSettings`.

        Raises:
            RuntimeError: If DSPy is not installed.
            ProviderAuthFailure: If a hosted provider is configured without a key.
        """
        if dspy is None:
            raise RuntimeError(
                "AI naming requires DSPy. Install it with `pip install namewise[llm]`."
            )

        self._settings = settings or LLMSettings()
        self._clients: Dict[str, Any] = {}

        if (
            self._settings.provider != "local"
            and self._settings.api_base_url is None
            and self._settings.api_key is None
        ):
            raise ProviderAuthFailure(
                "An API key is required for the configured provider. Update `llm.api_key`."
            )

        self._capabilities = ProviderCapabilities(
            name=self._settings.provider,
            supports_vision=self._settings.provider in _VISION_PROVIDERS,
            max_output_tokens=self._settings.max_output_tokens,
        )

    @property
    def capabilities(self) -> ProviderCapabilities:
        return self._capabilities

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Run ``request`` through the DSPy client for ``request.model``."""
        client = self._client_for(request.model)
        outputs = await client.acall(
            messages=self._messages(request),
            temperature=request.temperature,
            max_tokens=request.max_output_tokens,
        )

        text = ""
        if outputs:
            first = outputs[0]
            text = first.get("text", "") if isinstance(first, dict) else str(first)

        usage, finish_reason = self._last_call_details(client)
        return GenerationResponse(
            text=text,
            usage=usage,
            finish_reason=finish_reason,
            model=request.model,
        )

    def _client_for(self, model: str):
        client = self._clients.get(model)
        if client is not None:
            return client

        lm_kwargs: Dict[str, object] = {
            "model": model if "/" in model else f"{self._settings.provider}/{model}",
            "temperature": self._settings.temperature,
            "max_tokens": self._settings.max_output_tokens,
            "num_retries": 0,
            "cache": False,
        }
        if self._settings.api_base_url:
            lm_kwargs["api_base"] = self._settings.api_base_url
        if self._settings.api_key is not None:
            lm_kwargs["api_key"] = self._settings.api_key

        LOGGER.debug("Creating DSPy client for model %s", lm_kwargs["model"])
        client = dspy.LM(**lm_kwargs)
        self._clients[model] = client
        return client

    @staticmethod
    def _messages(request: GenerationRequest) -> List[Dict[str, Any]]:
        if not request.images:
            user_content: Any = request.user_prompt
        else:
            user_content = [{"type": "text", "text": request.user_prompt}]
            for image in request.images:
                encoded = base64.b64encode(image).decode("ascii")
                user_content.append(
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:image/jpeg;base64,{encoded}"},
                    }
                )
        return [
            {"role": "system", "content": request.system_prompt},
            {"role": "user", "content": user_content},
        ]

    @staticmethod
    def _last_call_details(client) -> tuple[TokenUsage, Optional[str]]:
        history = getattr(client, "history", None) or []
        if not history:
            return TokenUsage(), None

        entry = history[-1]
        raw_usage = entry.get("usage") or {}
        usage = TokenUsage(
            prompt=int(raw_usage.get("prompt_tokens") or 0),
            completion=int(raw_usage.get("completion_tokens") or 0),
            total=int(raw_usage.get("total_tokens") or 0),
        )

        finish_reason = None
        response = entry.get("response")
        choices = getattr(response, "choices", None)
        if choices:
            finish_reason = getattr(choices[0], "finish_reason", None)
        return usage, finish_reason


__all__ = ["DSPyTextService"]
