"""Design engine: outline-aware generation with validation and retry."""

from __future__ import annotations

import html
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from typing import Any, Protocol

from loguru import logger

from kcl_design.core.density import apply_density_warnings
from kcl_design.core.outline import DEFAULT_OUTLINE_LEXICON, OutlineLexicon, detect_outline_phase
from kcl_design.core.parser import parse_frames_from_response
from kcl_design.core.prompt import (
    RetryContext,
    SystemPromptContext,
    UserPromptParams,
    build_system_prompt,
    build_user_prompt,
)
from kcl_design.core.types import (
    ComposeOptions,
    ComposeResult,
    DesignAction,
    DocReference,
    FrameCode,
    GenerationContext,
    GenerationResult,
    OutlinePhase,
    ValidationErrorKind,
    ValidationIssue,
    ValidationResult,
)
from kcl_design.core.validator import merge_validations, validate_frame_code
from kcl_design.core.vocabulary import DEFAULT_VOCABULARY, ComponentVocabulary

MAX_DESIGN_RETRIES = 2
DEFAULT_MAX_TOKENS = 16384
OUTLINE_MAX_TOKENS = 2048
GENERATION_FROM_OUTLINE_MAX_TOKENS = 32768
NO_FRAMES_MESSAGE = "Response contained no frames"

OUTLINE_PHASES = frozenset({OutlinePhase.NEEDS_OUTLINE, OutlinePhase.OUTLINE_REVISION})


class ModelGateway(Protocol):
    """Single-shot text completion capability. Failures propagate to the caller."""

    async def compose(self, prompt: str, system_prompt: str, options: ComposeOptions) -> ComposeResult: ...


@dataclass(frozen=True)
class EngineOptions:
    """Per-call switches for :meth:`DesignEngine.execute_with_validation`."""

    on_chunk: Callable[[str], None] | None = None
    allow_clarification: bool = False


class DesignEngine:
    """Runs design actions against a model gateway.

    The engine keeps no per-call state; concurrent calls are independent.
    """

    def __init__(
        self,
        gateway: ModelGateway,
        *,
        vocabulary: ComponentVocabulary = DEFAULT_VOCABULARY,
        outline_lexicon: OutlineLexicon = DEFAULT_OUTLINE_LEXICON,
        max_retries: int = MAX_DESIGN_RETRIES,
        default_max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> None:
        self._gateway = gateway
        self._vocabulary = vocabulary
        self._outline_lexicon = outline_lexicon
        self._max_retries = max_retries
        self._default_max_tokens = default_max_tokens
        self._root_marker = re.compile(rf"<{re.escape(vocabulary.root_tag)}[\s>]", re.IGNORECASE)

    async def execute_with_validation(
        self,
        action: DesignAction,
        build_user: Callable[[], str],
        prompt_context: SystemPromptContext,
        context: GenerationContext,
        options: EngineOptions | None = None,
    ) -> GenerationResult:
        """Call the model until the frames validate or the retries run out.

        Only validation failures are retried. The last attempt always
        returns, carrying its validation result whether valid or not.
        """

        options = options or EngineOptions()
        compose_options = ComposeOptions(
            max_tokens=context.max_tokens or self._default_max_tokens,
            provider=context.provider,
            model=context.model,
            seed=context.seed,
            api_key=context.api_key,
        )
        last_validation: ValidationResult | None = None
        attempt = 0
        while True:
            effective_context = prompt_context
            if last_validation is not None:
                effective_context = replace(
                    prompt_context,
                    retry_context=RetryContext(
                        attempt=attempt,
                        previous_error="\n".join(f"- {error.message}" for error in last_validation.errors),
                    ),
                )

            logger.info("design.attempt action={} attempt={}", action.value, attempt)
            result = await self._gateway.compose(
                build_user(),
                build_system_prompt(action, effective_context),
                compose_options,
            )
            if options.on_chunk is not None:
                options.on_chunk(result.text)

            response_text = result.text.strip()
            if attempt == 0 and options.allow_clarification and not self._root_marker.search(response_text):
                logger.info("design.clarification action={} provider={}", action.value, result.provider)
                return GenerationResult(
                    action=action,
                    frames=[],
                    provider=result.provider,
                    model=result.model,
                    raw_response=response_text,
                    validation=ValidationResult.ok(),
                    retries_used=0,
                    is_clarification=True,
                    clarification_message=response_text,
                )

            frames = parse_frames_from_response(result.text)
            validation = merge_validations(validate_frame_code(frame.code, self._vocabulary) for frame in frames)
            if not frames:
                validation = ValidationResult(
                    errors=(ValidationIssue(ValidationErrorKind.PARSE_ERROR, NO_FRAMES_MESSAGE),)
                )
            if validation.valid or attempt >= self._max_retries:
                logger.info(
                    "design.done action={} attempt={} frames={} valid={} errors={} warnings={}",
                    action.value,
                    attempt,
                    len(frames),
                    validation.valid,
                    len(validation.errors),
                    len(validation.warnings),
                )
                return GenerationResult(
                    action=action,
                    frames=frames,
                    provider=result.provider,
                    model=result.model,
                    raw_response=result.text,
                    validation=validation,
                    retries_used=attempt,
                    is_clarification=False,
                )

            logger.warning(
                "design.invalid action={} attempt={} errors={}", action.value, attempt, len(validation.errors)
            )
            last_validation = validation
            attempt += 1

    async def generate_frames(
        self,
        prompt: str,
        context: GenerationContext,
        options: EngineOptions | None = None,
    ) -> GenerationResult:
        """Generate new frames through the outline-first flow."""

        outline = detect_outline_phase(context.conversation_history, prompt, self._outline_lexicon)
        logger.info("design.outline_phase phase={}", outline.phase.value)
        prompt_context = self._base_prompt_context(context)
        max_tokens = context.max_tokens or self._default_max_tokens
        allow_clarification = False

        if outline.phase in OUTLINE_PHASES:
            prompt_context = replace(prompt_context, outline_phase=outline.phase)
            allow_clarification = True
            max_tokens = OUTLINE_MAX_TOKENS
        elif outline.phase is OutlinePhase.OUTLINE_CONFIRMED:
            prompt_context = replace(prompt_context, confirmed_outline=outline.confirmed_outline)
            max_tokens = max(max_tokens, GENERATION_FROM_OUTLINE_MAX_TOKENS)

        result = await self.execute_with_validation(
            DesignAction.GENERATE,
            lambda: build_user_prompt(
                UserPromptParams(
                    action=DesignAction.GENERATE,
                    prompt=prompt,
                    existing_frames=context.existing_frames,
                    conversation_history=context.conversation_history,
                )
            ),
            prompt_context,
            context.with_max_tokens(max_tokens),
            _with_clarification(options, allow_clarification),
        )
        if result.is_clarification and outline.phase in OUTLINE_PHASES:
            result.is_outline = True
        return apply_density_warnings(result, self._vocabulary)

    async def edit_frame(
        self,
        prompt: str,
        existing_code: str,
        context: GenerationContext,
        options: EngineOptions | None = None,
    ) -> GenerationResult:
        params = UserPromptParams(
            action=DesignAction.EDIT,
            prompt=prompt,
            existing_code=existing_code,
            existing_frames=context.existing_frames,
        )
        return await self.execute_with_validation(
            DesignAction.EDIT, lambda: build_user_prompt(params), self._base_prompt_context(context), context, options
        )

    async def style_frames(
        self,
        prompt: str,
        frame_codes: Sequence[FrameCode],
        context: GenerationContext,
        options: EngineOptions | None = None,
    ) -> GenerationResult:
        """Restyle frames; content and data bindings are kept."""

        params = UserPromptParams(
            action=DesignAction.STYLE,
            prompt=prompt,
            frame_codes=frame_codes,
            existing_frames=context.existing_frames,
        )
        return await self.execute_with_validation(
            DesignAction.STYLE, lambda: build_user_prompt(params), self._base_prompt_context(context), context, options
        )

    async def update_content(
        self,
        prompt: str,
        existing_code: str,
        context: GenerationContext,
        options: EngineOptions | None = None,
    ) -> GenerationResult:
        params = UserPromptParams(
            action=DesignAction.CONTENT,
            prompt=prompt,
            existing_code=existing_code,
            existing_frames=context.existing_frames,
        )
        return await self.execute_with_validation(
            DesignAction.CONTENT,
            lambda: build_user_prompt(params),
            self._base_prompt_context(context),
            context,
            options,
        )

    async def compose_from_docs(
        self,
        prompt: str,
        doc_refs: Sequence[DocReference],
        context: GenerationContext,
        options: EngineOptions | None = None,
    ) -> GenerationResult:
        """Build a multi-frame canvas from source documents. Never clarifies."""

        params = UserPromptParams(
            action=DesignAction.COMPOSE,
            prompt=prompt,
            doc_refs=doc_refs,
            existing_frames=context.existing_frames,
            conversation_history=context.conversation_history,
        )
        return await self.execute_with_validation(
            DesignAction.COMPOSE,
            lambda: build_user_prompt(params),
            self._base_prompt_context(context),
            context,
            _with_clarification(options, False),
        )

    @staticmethod
    def _base_prompt_context(context: GenerationContext) -> SystemPromptContext:
        return SystemPromptContext(
            composition_mode=context.composition_mode,
            brand_guidelines=context.brand_guidelines,
            memory_context=context.memory_context,
        )


def _with_clarification(options: EngineOptions | None, allow: bool) -> EngineOptions:
    return replace(options or EngineOptions(), allow_clarification=allow)


def build_proof_payload(prompt: str, result: GenerationResult, canvas_id: str) -> dict[str, dict[str, Any]]:
    """Shape the input/output summary recorded alongside a design result."""

    return {
        "input": {
            "prompt": prompt,
            "action": result.action.value,
            "canvasId": canvas_id,
            "provider": result.provider,
            "model": result.model,
        },
        "output": {
            "frameCount": len(result.frames),
            "codeHashes": [frame.fingerprint for frame in result.frames],
            "validation": {
                "valid": result.validation.valid,
                "errorCount": len(result.validation.errors),
                "warningCount": len(result.validation.warnings),
            },
            "retriesUsed": result.retries_used,
        },
    }


def build_image_asset_ref(asset_id: str, canvas_id: str, alt: str) -> str:
    """Return a ``kcl-image`` element pointing at a stored canvas asset."""

    return (
        f'<kcl-image src="/canvases/{_escape_attr(canvas_id)}/assets/{_escape_attr(asset_id)}" '
        f'alt="{_escape_attr(alt)}" />'
    )


def _escape_attr(value: str) -> str:
    return html.escape(value, quote=False).replace('"', "&quot;")
