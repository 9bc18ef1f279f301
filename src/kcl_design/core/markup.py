"""Lightweight start-tag tokenizer for KCL frame markup."""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field

from kcl_design.core.vocabulary import DEFAULT_VOCABULARY

START_TAG_RE = re.compile(r"<([A-Za-z][A-Za-z0-9-]*)((?:\"[^\"]*\"|'[^']*'|[^'\">])*)(>|\Z)")
DECLARATION_RE = re.compile(r"<!([A-Za-z]+)[^>]*(>|\Z)")
ATTR_RE = re.compile(r"([^\s\"'>/=]+)(?:\s*=\s*(?:\"([^\"]*)\"|'([^']*)'|([^\s\"'=<>`]+)))?")
COMMENT_OPEN = "<!--"
COMMENT_CLOSE = "-->"


@dataclass(frozen=True)
class StartTag:
    """One start tag found outside comments and verbatim bodies."""

    name: str
    attrs: dict[str, str] = field(default_factory=dict)
    start: int = 0
    end: int = 0
    line: int = 1
    body: str | None = None
    self_closing: bool = False

    def attr(self, name: str) -> str | None:
        return self.attrs.get(name)

    def has_attr(self, name: str) -> bool:
        return name in self.attrs


def parse_attributes(raw: str) -> dict[str, str]:
    """Parse the attribute run of a start tag. Valueless attributes map to ""."""

    attrs: dict[str, str] = {}
    for match in ATTR_RE.finditer(raw):
        name = match.group(1).lower()
        if name in attrs:
            continue
        value = next((group for group in match.groups()[1:] if group is not None), "")
        attrs[name] = value
    return attrs


def iter_tags(code: str, verbatim_tags: frozenset[str] = DEFAULT_VOCABULARY.verbatim_tags) -> Iterator[StartTag]:
    """Yield start tags in document order.

    Comments and end tags are skipped. The text inside a verbatim element
    (``kcl-code``, ``script``, ``style``) is attached to its start tag as
    ``body`` and never scanned for nested tags.
    """

    pos = 0
    length = len(code)
    line = 1
    counted = 0
    while pos < length:
        index = code.find("<", pos)
        if index == -1:
            return
        line += code.count("\n", counted, index)
        counted = index

        if code.startswith(COMMENT_OPEN, index):
            close = code.find(COMMENT_CLOSE, index + len(COMMENT_OPEN))
            pos = length if close == -1 else close + len(COMMENT_CLOSE)
            continue

        if code.startswith("</", index):
            close = code.find(">", index)
            pos = length if close == -1 else close + 1
            continue

        if code.startswith("<!", index):
            declaration = DECLARATION_RE.match(code, index)
            if declaration is None:
                pos = index + 2
                continue
            yield StartTag(
                name=f"!{declaration.group(1).lower()}",
                start=index,
                end=declaration.end(),
                line=line,
            )
            pos = declaration.end()
            continue

        match = START_TAG_RE.match(code, index)
        if match is None:
            pos = index + 1
            continue

        name = match.group(1).lower()
        raw_attrs = match.group(2).rstrip()
        self_closing = raw_attrs.endswith("/")
        end = match.end()
        body: str | None = None
        pos = end
        if name in verbatim_tags and not self_closing:
            close = _find_close(code, name, end)
            # An unclosed element has no body; scanning resumes after its start tag.
            if close != -1:
                body = code[end:close]
                pos = close

        yield StartTag(
            name=name,
            attrs=parse_attributes(raw_attrs.rstrip("/")),
            start=index,
            end=end,
            line=line,
            body=body,
            self_closing=self_closing,
        )


def find_data_scripts(code: str, verbatim_tags: frozenset[str] = DEFAULT_VOCABULARY.verbatim_tags) -> list[StartTag]:
    """Return ``<script data-for=... type="application/json">`` tags with their bodies."""

    return [
        tag
        for tag in iter_tags(code, verbatim_tags)
        if tag.name == "script"
        and tag.has_attr("data-for")
        and (tag.attr("type") or "").strip().lower() == "application/json"
    ]


def _find_close(code: str, name: str, start: int) -> int:
    match = re.compile(rf"</{re.escape(name)}\s*>", re.IGNORECASE).search(code, start)
    return -1 if match is None else match.start()
