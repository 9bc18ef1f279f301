"""Republic integration helpers."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from loguru import logger
from republic import LLM

from kcl_design.config import Settings
from kcl_design.core.types import ComposeOptions, ComposeResult
from kcl_design.errors import InvalidModelFormatError, ModelNotConfiguredError

MODEL_NOT_CONFIGURED_ERROR = "Model not configured. Set KCL_DESIGN_MODEL (e.g., 'anthropic:claude-sonnet-4-5')."


class RepublicGateway:
    """Model gateway backed by a Republic ``LLM`` built per call.

    A new client is built for every call so that per-call provider, model
    and API key overrides never leak between concurrent calls.
    """

    def __init__(self, settings: Settings, llm_factory: Callable[..., Any] = LLM) -> None:
        self._settings = settings
        self._llm_factory = llm_factory

    async def compose(self, prompt: str, system_prompt: str, options: ComposeOptions) -> ComposeResult:
        model = resolve_model(options, self._settings)
        llm = self._llm_factory(
            model,
            api_key=options.api_key or self._settings.api_key,
            api_base=self._settings.api_base,
        )
        kwargs: dict[str, Any] = {"system_prompt": system_prompt, "max_tokens": options.max_tokens}
        if options.seed is not None:
            kwargs["seed"] = options.seed
        logger.debug("gateway.compose model={} max_tokens={}", model, options.max_tokens)
        text = await llm.chat_async(prompt, **kwargs)
        return ComposeResult(text=text or "", provider=str(llm.provider), model=str(llm.model))


def resolve_model(options: ComposeOptions, settings: Settings) -> str:
    """Return the ``provider:model`` string for one call."""

    if options.model and ":" in options.model:
        return options.model
    if options.model:
        provider = options.provider or _provider_of(settings.model)
        if not provider:
            raise InvalidModelFormatError(f"Model must be in provider:model format, got {options.model!r}")
        return f"{provider}:{options.model}"

    if not settings.model:
        raise ModelNotConfiguredError(MODEL_NOT_CONFIGURED_ERROR)
    if ":" not in settings.model:
        raise InvalidModelFormatError(f"Model must be in provider:model format, got {settings.model!r}")
    if options.provider:
        return f"{options.provider}:{settings.model.partition(':')[2]}"
    return settings.model


def build_gateway(settings: Settings) -> RepublicGateway:
    """Build the default gateway for the configured settings."""

    return RepublicGateway(settings)


def _provider_of(model: str | None) -> str:
    if not model:
        return ""
    provider, separator, _ = model.partition(":")
    return provider if separator else ""
