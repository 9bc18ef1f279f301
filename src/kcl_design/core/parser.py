"""Split raw model output into frames."""

from __future__ import annotations

import hashlib
import re

from kcl_design.core.markup import iter_tags
from kcl_design.core.types import Frame

FRAME_SEPARATOR = "<!-- FRAME_SEPARATOR -->"
NARRATIVE_START = "<!-- NARRATIVE_START -->"
NARRATIVE_END = "<!-- NARRATIVE_END -->"

FENCE_RE = re.compile(r"^```(?:html)?\s*\n([\s\S]*?)\n```\s*$")
INNER_FENCE_RE = re.compile(r"^```", re.MULTILINE)
SPEAKER_NOTES_RE = re.compile(r"<!--\s*SPEAKER_NOTES:([\s\S]*?)-->")
TITLE_TAG = "kcl-text"
TITLE_LEVEL = "h1"


def strip_markdown_fencing(text: str) -> str:
    """Remove a single ```html fence wrapping the whole text, then trim.

    Text holding several fenced blocks is left as is; each block is
    unwrapped later, per frame.
    """

    result = text.strip()
    match = FENCE_RE.match(result)
    if match and not INNER_FENCE_RE.search(match.group(1)):
        result = match.group(1)
    return result.strip()


def compute_fingerprint(code: str) -> str:
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


def parse_frames_from_response(response: str) -> list[Frame]:
    """Parse one model response into frames, preserving order."""

    cleaned = strip_markdown_fencing(response)
    candidates = [part.strip() for part in cleaned.split(FRAME_SEPARATOR)]
    candidates = [part for part in candidates if part]
    if not candidates and cleaned:
        candidates = [cleaned]
    return [_parse_frame(candidate) for candidate in candidates]


def _parse_frame(candidate: str) -> Frame:
    content = strip_markdown_fencing(candidate)
    narrative, content = _split_narrative(content)
    return Frame(
        code=content,
        fingerprint=compute_fingerprint(content),
        title=extract_title(content),
        speaker_notes=_extract_speaker_notes(content),
        narrative_html=narrative,
    )


def _split_narrative(content: str) -> tuple[str | None, str]:
    start = content.find(NARRATIVE_START)
    end = content.find(NARRATIVE_END)
    if start == -1 or end == -1 or end <= start:
        return None, content

    narrative = content[start + len(NARRATIVE_START) : end].strip()
    code = content[end + len(NARRATIVE_END) :].strip()
    return narrative or None, code


def extract_title(code: str) -> str | None:
    """Return the text of the first ``<kcl-text level="h1">`` element."""

    lowered = code.lower()
    for tag in iter_tags(code):
        if tag.name != TITLE_TAG or (tag.attr("level") or "").lower() != TITLE_LEVEL:
            continue
        close = lowered.find(f"</{TITLE_TAG}", tag.end)
        if close == -1:
            continue
        text = code[tag.end : close]
        if "<" in text:
            continue
        return text.strip() or None
    return None


def _extract_speaker_notes(code: str) -> str | None:
    match = SPEAKER_NOTES_RE.search(code)
    if match is None:
        return None
    return match.group(1).strip() or None
