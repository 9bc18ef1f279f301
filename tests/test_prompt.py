from kcl_design.core.prompt import (
    DENSITY_EXAMPLE,
    ERROR_PREVENTION_RULES,
    KCL_COMPONENTS,
    OUTLINE_REVISION_NOTE,
    RetryContext,
    SystemPromptContext,
    UserPromptParams,
    build_kcl_reference,
    build_system_prompt,
    build_user_prompt,
)
from kcl_design.core.types import (
    BrandGuidelines,
    CompositionMode,
    ConversationTurn,
    DesignAction,
    DocReference,
    FrameCode,
    FrameSummary,
    OutlinePhase,
)
from kcl_design.core.vocabulary import DEFAULT_VOCABULARY


def test_reference_covers_the_whole_vocabulary() -> None:
    assert {component.tag for component in KCL_COMPONENTS} == DEFAULT_VOCABULARY.component_tags
    reference = build_kcl_reference()
    assert reference.startswith("## KCL Component Reference (16 components)")
    assert "### <kcl-chart>" in reference


def test_system_prompt_layout() -> None:
    prompt = build_system_prompt(DesignAction.EDIT, SystemPromptContext(composition_mode=CompositionMode.NOTEBOOK))
    assert "## Task: Edit Existing Frame" in prompt
    assert "## Current Canvas Mode: notebook" in prompt
    assert "NARRATIVE_START" in prompt
    assert prompt.endswith(ERROR_PREVENTION_RULES)
    assert "## Slide Outline Phase" not in prompt
    assert "RETRY ATTEMPT" not in prompt


def test_outline_phases_switch_instructions() -> None:
    needs = build_system_prompt(
        DesignAction.GENERATE,
        SystemPromptContext(CompositionMode.DECK, outline_phase=OutlinePhase.NEEDS_OUTLINE),
    )
    revision = build_system_prompt(
        DesignAction.GENERATE,
        SystemPromptContext(CompositionMode.DECK, outline_phase=OutlinePhase.OUTLINE_REVISION),
    )
    assert "## Slide Outline Phase" in needs
    assert OUTLINE_REVISION_NOTE not in needs
    assert "## Slide Outline Phase" in revision
    assert OUTLINE_REVISION_NOTE in revision


def test_confirmed_outline_is_embedded_with_density_example() -> None:
    outline = "## Slide Outline\n1. **Intro** — hero"
    prompt = build_system_prompt(
        DesignAction.GENERATE,
        SystemPromptContext(CompositionMode.DECK, confirmed_outline=outline),
    )
    assert f"### Confirmed Outline\n\n{outline}" in prompt
    assert DENSITY_EXAMPLE in prompt
    assert "## Slide Outline Phase" not in prompt


def test_brand_memory_and_retry_sections() -> None:
    context = SystemPromptContext(
        CompositionMode.PAGE,
        brand_guidelines=BrandGuidelines(primary_color="#123456", font_family="Inter"),
        memory_context="## Project Memory\nPrefers dark themes.",
        retry_context=RetryContext(attempt=1, previous_error="- Unknown KCL component: <kcl-sparkle>"),
    )
    prompt = build_system_prompt(DesignAction.STYLE, context)
    assert "- Primary color: #123456" in prompt
    assert "- Font family: Inter" in prompt
    assert "Secondary color" not in prompt
    assert "Prefers dark themes." in prompt
    assert "## RETRY ATTEMPT 2\nYour previous output had validation errors. Fix the following:" in prompt
    assert "- Unknown KCL component: <kcl-sparkle>" in prompt
    assert prompt.index("RETRY ATTEMPT") < prompt.index("## Error Prevention Rules")


def test_user_prompt_sections() -> None:
    params = UserPromptParams(
        action=DesignAction.COMPOSE,
        prompt="Turn these notes into a deck",
        frame_codes=(FrameCode("f-1", "<kcl-slide></kcl-slide>"),),
        doc_refs=(
            DocReference("doc-1", title="Q3 Report", content="Revenue grew.", sections=(("Costs", "Flat."),)),
            DocReference("doc-2"),
        ),
        existing_frames=(FrameSummary("f-1", None, 0, "title slide"),),
        conversation_history=(ConversationTurn("user", "hi"), ConversationTurn("assistant", "hello")),
    )
    prompt = build_user_prompt(params)
    assert prompt.startswith("## Conversation History\nUser: hi\nAssistant: hello\n")
    assert "## User Request\nTurn these notes into a deck" in prompt
    assert "## Frame f-1\n```html\n<kcl-slide></kcl-slide>\n```" in prompt
    assert "## Source Documents" in prompt
    assert "### Q3 Report\nRevenue grew.\n#### Costs\nFlat." in prompt
    assert "### doc-2" in prompt
    assert "- Frame 1: Untitled — title slide" in prompt


def test_user_prompt_minimal() -> None:
    prompt = build_user_prompt(
        UserPromptParams(action=DesignAction.EDIT, prompt="Make it blue", existing_code="<kcl-slide/>")
    )
    assert prompt == "## User Request\nMake it blue\n\n## Current Frame Code\n```html\n<kcl-slide/>\n```"
