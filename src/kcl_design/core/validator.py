"""Structural validation of generated frame markup.

Every check runs on every frame and contributes to one combined result, so
a single pass reports all problems instead of the first one found. Tag
scanning goes through :mod:`kcl_design.core.markup`, which leaves the
literal bodies of ``kcl-code``, ``script`` and ``style`` alone.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable

from kcl_design.core.markup import StartTag, iter_tags
from kcl_design.core.types import ValidationErrorKind, ValidationIssue, ValidationResult, ValidationWarningKind
from kcl_design.core.vocabulary import DEFAULT_VOCABULARY, ComponentVocabulary

MAX_FRAME_CHARS = 20_000
KCL_PREFIX = "kcl-"
JSON_SCRIPT_TYPE = "application/json"


def validate_frame_code(code: str, vocabulary: ComponentVocabulary = DEFAULT_VOCABULARY) -> ValidationResult:
    """Validate one frame's code against the component vocabulary."""

    trimmed = code.strip()
    tags = list(iter_tags(trimmed, vocabulary.verbatim_tags))
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []

    errors.extend(_check_root(trimmed, vocabulary))
    errors.extend(_check_forbidden_wrappers(tags, vocabulary))
    errors.extend(_check_component_tags(tags, vocabulary))
    errors.extend(_check_references(tags))
    warnings.extend(_check_required_bindings(tags, vocabulary))
    errors.extend(_check_json_payloads(tags))
    warnings.extend(_check_image_alt(tags, vocabulary))
    warnings.extend(_check_size(trimmed))

    return ValidationResult(errors=tuple(errors), warnings=tuple(warnings))


def merge_validations(results: Iterable[ValidationResult]) -> ValidationResult:
    """Concatenate per-frame results; valid only if every frame is valid."""

    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []
    for result in results:
        errors.extend(result.errors)
        warnings.extend(result.warnings)
    return ValidationResult(errors=tuple(errors), warnings=tuple(warnings))


def _check_root(trimmed: str, vocabulary: ComponentVocabulary) -> list[ValidationIssue]:
    root_re = re.compile(rf"^<{re.escape(vocabulary.root_tag)}[\s>/]", re.IGNORECASE)
    if root_re.match(trimmed):
        return []
    return [
        ValidationIssue(
            ValidationErrorKind.INVALID_NESTING,
            f"Frame must start with <{vocabulary.root_tag}> as root element",
            line=1,
        )
    ]


def _check_forbidden_wrappers(tags: list[StartTag], vocabulary: ComponentVocabulary) -> list[ValidationIssue]:
    first = next((tag for tag in tags if tag.name in vocabulary.forbidden_wrappers), None)
    if first is None:
        return []
    return [
        ValidationIssue(
            ValidationErrorKind.INVALID_TAG,
            "Frame must not contain <!DOCTYPE>, <html>, <head>, or <body>",
            line=first.line,
        )
    ]


def _check_component_tags(tags: list[StartTag], vocabulary: ComponentVocabulary) -> list[ValidationIssue]:
    return [
        ValidationIssue(ValidationErrorKind.INVALID_TAG, f"Unknown KCL component: <{tag.name}>", line=tag.line)
        for tag in tags
        if tag.name.startswith(KCL_PREFIX) and tag.name not in vocabulary.component_tags
    ]


def _check_references(tags: list[StartTag]) -> list[ValidationIssue]:
    ids = {tag.attr("id") for tag in tags if tag.has_attr("id")}
    issues: list[ValidationIssue] = []
    for tag in tags:
        target = tag.attr("data-for")
        if not target or target in ids:
            continue
        issues.append(
            ValidationIssue(
                ValidationErrorKind.MISSING_DATA_SCRIPT,
                f'data-for="{target}" references non-existent element id',
                line=tag.line,
            )
        )
    return issues


def _check_required_bindings(tags: list[StartTag], vocabulary: ComponentVocabulary) -> list[ValidationIssue]:
    bound = {tag.attr("data-for") for tag in tags if tag.has_attr("data-for")}
    issues: list[ValidationIssue] = []
    for tag in tags:
        if tag.name not in vocabulary.data_required_tags:
            continue
        element_id = tag.attr("id")
        if not element_id or element_id in bound:
            continue
        issues.append(
            ValidationIssue(
                ValidationWarningKind.EMPTY_CONTENT,
                f'<{tag.name} id="{element_id}"> requires data binding but no <script data-for="{element_id}"> found',
                line=tag.line,
            )
        )
    return issues


def _check_json_payloads(tags: list[StartTag]) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for tag in tags:
        if tag.name != "script" or not tag.has_attr("data-for"):
            continue
        if (tag.attr("type") or "").strip().lower() != JSON_SCRIPT_TYPE:
            continue
        try:
            json.loads(tag.body or "")
        except ValueError:
            issues.append(
                ValidationIssue(ValidationErrorKind.PARSE_ERROR, "Invalid JSON in data binding script", line=tag.line)
            )
    return issues


def _check_image_alt(tags: list[StartTag], vocabulary: ComponentVocabulary) -> list[ValidationIssue]:
    missing = next((tag for tag in tags if tag.name == vocabulary.image_tag and not tag.has_attr("alt")), None)
    if missing is None:
        return []
    return [
        ValidationIssue(
            ValidationWarningKind.MISSING_ALT,
            f"<{vocabulary.image_tag}> is missing an alt attribute for accessibility",
            line=missing.line,
        )
    ]


def _check_size(trimmed: str) -> list[ValidationIssue]:
    if len(trimmed) <= MAX_FRAME_CHARS:
        return []
    return [
        ValidationIssue(ValidationWarningKind.LARGE_OUTPUT, f"Frame code is unusually large ({len(trimmed)} chars)")
    ]
