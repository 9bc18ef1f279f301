"""KCL component vocabulary tables."""

from __future__ import annotations

from dataclasses import dataclass, field

ROOT_TAG = "kcl-slide"


@dataclass(frozen=True)
class ComponentVocabulary:
    """Tag tables consulted by the validator, density check and tokenizer."""

    root_tag: str = ROOT_TAG
    component_tags: frozenset[str] = field(
        default_factory=lambda: frozenset({
            "kcl-slide",
            "kcl-text",
            "kcl-layout",
            "kcl-image",
            "kcl-list",
            "kcl-quote",
            "kcl-metric",
            "kcl-icon",
            "kcl-animate",
            "kcl-code",
            "kcl-embed",
            "kcl-source",
            "kcl-chart",
            "kcl-table",
            "kcl-timeline",
            "kcl-compare",
        })
    )
    data_required_tags: frozenset[str] = field(
        default_factory=lambda: frozenset({"kcl-chart", "kcl-table", "kcl-timeline", "kcl-compare"})
    )
    data_component_tags: frozenset[str] = field(
        default_factory=lambda: frozenset({"kcl-metric", "kcl-chart", "kcl-table", "kcl-timeline", "kcl-compare"})
    )
    forbidden_wrappers: frozenset[str] = field(default_factory=lambda: frozenset({"!doctype", "html", "head", "body"}))
    # Element bodies that hold literal text, never markup.
    verbatim_tags: frozenset[str] = field(default_factory=lambda: frozenset({"kcl-code", "script", "style"}))
    image_tag: str = "kcl-image"


DEFAULT_VOCABULARY = ComponentVocabulary()
