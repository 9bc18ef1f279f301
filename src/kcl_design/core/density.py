"""Post-generation content density heuristics."""

from __future__ import annotations

from dataclasses import dataclass

from kcl_design.core.markup import iter_tags
from kcl_design.core.types import GenerationResult, ValidationIssue, ValidationWarningKind
from kcl_design.core.vocabulary import DEFAULT_VOCABULARY, ComponentVocabulary

MIN_COMPONENTS_PER_SLIDE = 5
MIN_DATA_COMPONENTS_PER_SLIDE = 1


@dataclass(frozen=True)
class DensityCheckResult:
    passed: bool
    slide_index: int
    component_count: int
    data_component_count: int
    issues: tuple[str, ...] = ()


def validate_content_density(
    frame_code: str,
    slide_index: int,
    vocabulary: ComponentVocabulary = DEFAULT_VOCABULARY,
) -> DensityCheckResult:
    """Count KCL components in one frame and report sparse slides.

    The root element counts as a component. Failures are advisory only.
    """

    names = [tag.name for tag in iter_tags(frame_code, vocabulary.verbatim_tags) if tag.name.startswith("kcl-")]
    component_count = len(names)
    data_component_count = sum(1 for name in names if name in vocabulary.data_component_tags)
    data_tags = ", ".join(sorted(vocabulary.data_component_tags))

    issues: list[str] = []
    if component_count < MIN_COMPONENTS_PER_SLIDE:
        issues.append(
            f"Slide {slide_index + 1}: has {component_count} components, minimum is {MIN_COMPONENTS_PER_SLIDE}. "
            "Add more KCL components to fill the viewport."
        )
    if data_component_count < MIN_DATA_COMPONENTS_PER_SLIDE:
        issues.append(
            f"Slide {slide_index + 1}: has {data_component_count} data components, minimum is "
            f"{MIN_DATA_COMPONENTS_PER_SLIDE}. Add at least one of: {data_tags}."
        )

    return DensityCheckResult(
        passed=not issues,
        slide_index=slide_index,
        component_count=component_count,
        data_component_count=data_component_count,
        issues=tuple(issues),
    )


def apply_density_warnings(
    result: GenerationResult,
    vocabulary: ComponentVocabulary = DEFAULT_VOCABULARY,
) -> GenerationResult:
    """Append density warnings to an accepted result. ``valid`` is unaffected."""

    if result.is_clarification or not result.frames:
        return result

    extra: list[ValidationIssue] = []
    for index, frame in enumerate(result.frames):
        density = validate_content_density(frame.code, index, vocabulary)
        extra.extend(ValidationIssue(ValidationWarningKind.EMPTY_CONTENT, issue) for issue in density.issues)
    if extra:
        result.validation = result.validation.with_warnings(extra)
    return result
