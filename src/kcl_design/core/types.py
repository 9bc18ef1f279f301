"""Shared core dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum


class DesignAction(str, Enum):
    """Design action requested by the caller."""

    GENERATE = "generate"
    EDIT = "edit"
    STYLE = "style"
    CONTENT = "content"
    COMPOSE = "compose"

    @property
    def proof_kind(self) -> str:
        return f"design:{self.value}"


class CompositionMode(str, Enum):
    DECK = "deck"
    PAGE = "page"
    NOTEBOOK = "notebook"
    WIDGET = "widget"


class OutlinePhase(str, Enum):
    """Conversation phase of the outline-first generate flow."""

    NEEDS_OUTLINE = "needs_outline"
    OUTLINE_CONFIRMED = "outline_confirmed"
    OUTLINE_REVISION = "outline_revision"
    SKIP_OUTLINE = "skip_outline"


class ValidationErrorKind(str, Enum):
    """Blocking validation issue kinds."""

    INVALID_TAG = "invalid_tag"
    UNCLOSED_TAG = "unclosed_tag"  # reserved
    INVALID_NESTING = "invalid_nesting"
    MISSING_DATA_SCRIPT = "missing_data_script"
    PARSE_ERROR = "parse_error"


class ValidationWarningKind(str, Enum):
    """Advisory validation issue kinds."""

    MISSING_ALT = "missing_alt"
    EMPTY_CONTENT = "empty_content"
    LARGE_OUTPUT = "large_output"
    UNKNOWN_ATTRIBUTE = "unknown_attribute"  # reserved


@dataclass(frozen=True)
class ConversationTurn:
    role: str
    content: str


@dataclass(frozen=True)
class FrameSummary:
    """Short description of a frame already present on the canvas."""

    id: str
    title: str | None
    sort_order: int
    code_summary: str


@dataclass(frozen=True)
class BrandGuidelines:
    primary_color: str | None = None
    secondary_color: str | None = None
    accent_color: str | None = None
    font_family: str | None = None
    style: str | None = None


@dataclass(frozen=True)
class DocReference:
    """Source document handed to the compose action."""

    doc_id: str
    title: str | None = None
    content: str | None = None
    sections: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class FrameCode:
    frame_id: str
    code: str


@dataclass(frozen=True)
class GenerationContext:
    """Caller-supplied context, fixed for the lifetime of one call."""

    canvas_id: str
    composition_mode: CompositionMode = CompositionMode.DECK
    canvas_title: str = ""
    kcl_version: str = "1.0.0"
    existing_frames: tuple[FrameSummary, ...] = ()
    brand_guidelines: BrandGuidelines | None = None
    provider: str | None = None
    model: str | None = None
    seed: str | int | None = None
    max_tokens: int | None = None
    api_key: str | None = field(default=None, repr=False)
    memory_context: str | None = None
    conversation_history: tuple[ConversationTurn, ...] | None = None

    def with_max_tokens(self, max_tokens: int) -> GenerationContext:
        return replace(self, max_tokens=max_tokens)


@dataclass(frozen=True)
class OutlinePhaseResult:
    phase: OutlinePhase
    confirmed_outline: str | None = None


@dataclass(frozen=True)
class Frame:
    """One parsed unit of generated markup."""

    code: str
    fingerprint: str
    title: str | None = None
    speaker_notes: str | None = None
    narrative_html: str | None = None


@dataclass(frozen=True)
class ValidationIssue:
    kind: ValidationErrorKind | ValidationWarningKind
    message: str
    line: int | None = None


@dataclass(frozen=True)
class ValidationResult:
    """Errors block a frame, warnings never do."""

    errors: tuple[ValidationIssue, ...] = ()
    warnings: tuple[ValidationIssue, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.errors

    def with_warnings(self, extra: list[ValidationIssue]) -> ValidationResult:
        return replace(self, warnings=(*self.warnings, *extra))

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls()


@dataclass(frozen=True)
class ComposeOptions:
    """Options recognized by the model gateway."""

    max_tokens: int
    provider: str | None = None
    model: str | None = None
    seed: str | int | None = None
    api_key: str | None = field(default=None, repr=False)


@dataclass(frozen=True)
class ComposeResult:
    text: str
    provider: str
    model: str


@dataclass
class GenerationResult:
    """Outcome of one design action call."""

    action: DesignAction
    frames: list[Frame]
    provider: str
    model: str
    raw_response: str
    validation: ValidationResult
    retries_used: int
    is_clarification: bool
    clarification_message: str | None = None
    is_outline: bool = False

    @property
    def proof_kind(self) -> str:
        return self.action.proof_kind
