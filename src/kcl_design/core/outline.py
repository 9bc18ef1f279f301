"""Outline phase detection for the outline-first generate flow."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from kcl_design.core.types import ConversationTurn, OutlinePhase, OutlinePhaseResult


@dataclass(frozen=True)
class OutlineLexicon:
    """Patterns used to classify a conversation turn."""

    outline_markers: tuple[re.Pattern[str], ...] = (
        re.compile(r"^##\s*Slide Outline", re.MULTILINE),
        re.compile(r"^\d+\.\s+\*\*[^*]+\*\*", re.MULTILINE),
    )
    skip: re.Pattern[str] = re.compile(
        r"\b(just generate|skip outline|no outline|generate directly|don'?t outline)\b", re.IGNORECASE
    )
    confirmation: re.Pattern[str] = re.compile(
        r"\b(looks good|go ahead|confirmed?|approved?|perfect|generate it|let'?s go|proceed|build it|make it"
        r"|create it|that'?s great|love it|ship it|yes|do it|lgtm)\b",
        re.IGNORECASE,
    )
    modification: re.Pattern[str] = re.compile(
        r"\b(but|however|change|modify|add|remove|swap|replace|update|move|instead|actually|wait|except)\b",
        re.IGNORECASE,
    )

    def is_outline(self, text: str) -> bool:
        return any(marker.search(text) for marker in self.outline_markers)


DEFAULT_OUTLINE_LEXICON = OutlineLexicon()


def detect_outline_phase(
    history: Sequence[ConversationTurn] | None,
    prompt: str,
    lexicon: OutlineLexicon = DEFAULT_OUTLINE_LEXICON,
) -> OutlinePhaseResult:
    """Classify the outline phase from prior turns and the current prompt."""

    if lexicon.skip.search(prompt):
        return OutlinePhaseResult(OutlinePhase.SKIP_OUTLINE)

    if not history:
        return OutlinePhaseResult(OutlinePhase.NEEDS_OUTLINE)

    outline_text = _latest_outline(history, lexicon)
    if outline_text is None:
        return OutlinePhaseResult(OutlinePhase.NEEDS_OUTLINE)

    trimmed = prompt.strip()
    if not lexicon.confirmation.search(trimmed):
        return OutlinePhaseResult(OutlinePhase.OUTLINE_REVISION)

    # Modification language wins over a confirmation word at any length.
    if lexicon.modification.search(trimmed):
        return OutlinePhaseResult(OutlinePhase.OUTLINE_REVISION)
    return OutlinePhaseResult(OutlinePhase.OUTLINE_CONFIRMED, confirmed_outline=outline_text)


def _latest_outline(history: Sequence[ConversationTurn], lexicon: OutlineLexicon) -> str | None:
    for turn in reversed(history):
        if turn.role == "assistant" and lexicon.is_outline(turn.content):
            return turn.content
    return None
