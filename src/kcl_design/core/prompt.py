"""System and user prompt assembly for design actions."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from kcl_design.core.parser import FRAME_SEPARATOR, NARRATIVE_END, NARRATIVE_START
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


@dataclass(frozen=True)
class ComponentRef:
    tag: str
    description: str
    attributes: tuple[str, ...]
    data_fields: str | None = None
    notes: tuple[str, ...] = ()


@dataclass(frozen=True)
class RetryContext:
    """Feedback from the previous attempt; ``attempt`` is zero-based."""

    attempt: int
    previous_error: str


@dataclass(frozen=True)
class SystemPromptContext:
    composition_mode: CompositionMode
    brand_guidelines: BrandGuidelines | None = None
    memory_context: str | None = None
    retry_context: RetryContext | None = None
    outline_phase: OutlinePhase | None = None
    confirmed_outline: str | None = None


@dataclass(frozen=True)
class UserPromptParams:
    action: DesignAction
    prompt: str
    existing_code: str | None = None
    frame_codes: Sequence[FrameCode] = ()
    doc_refs: Sequence[DocReference] = ()
    existing_frames: Sequence[FrameSummary] = ()
    conversation_history: Sequence[ConversationTurn] | None = None


KCL_COMPONENTS: tuple[ComponentRef, ...] = (
    ComponentRef(
        "kcl-slide",
        "Frame container. Every frame MUST start with this as root element.",
        ("background (color)", "transition (none|fade|slide-left|slide-right|zoom)", "aspect-ratio (16/9|4/3|1/1|9/16)", "padding (0-120px, default 48)"),
        '{ "backgroundImage": "string (URL)" }',
    ),
    ComponentRef(
        "kcl-text",
        "Typography for headings, paragraphs, and inline text.",
        ("level (h1|h2|h3|h4|h5|h6|p|span, default p)", "align (left|center|right|justify)", "color (CSS color)", "animate (none|fade|slide-up|slide-down|scale|bounce)"),
        '{ "content": "string (inline HTML allowed)" }',
    ),
    ComponentRef(
        "kcl-layout",
        "Flexbox/grid composition container.",
        ("type (flex|grid, default flex)", "direction (row|column)", "columns (1-12, grid mode)", "gap (0-96px, default 16)", "align (start|center|end|stretch)", "justify (start|center|end|between|around|evenly)"),
    ),
    ComponentRef(
        "kcl-image",
        "Image display with aspect ratio and lazy loading.",
        ("src (URL, required)", "alt (text, required for accessibility)", "fit (cover|contain|fill|none)", "radius (0-200px)"),
        '{ "src": "string (URL)" }',
    ),
    ComponentRef(
        "kcl-list",
        "Animated list with staggered entrance.",
        ("type (bullet|number|icon|none, default bullet)", "animate (none|fade|slide-up|slide-left|scale)", "stagger-delay (0-1000ms)"),
        '{ "items": [{ "text": "string", "icon?": "string" }] }',
    ),
    ComponentRef(
        "kcl-quote",
        "Blockquote with attribution and citation.",
        ("attribution (text)", "cite (URL)", "variant (default|large|minimal|highlight)"),
        '{ "text": "string", "attribution?": "string" }',
    ),
    ComponentRef(
        "kcl-metric",
        "Big number / KPI display with trend indicator.",
        ("label (text, required)", "prefix (text)", "suffix (text)", "trend (up|down|flat)", "format (number|compact|currency|percent)"),
        '{ "value": "number", "delta?": "number (percentage change)" }',
    ),
    ComponentRef(
        "kcl-icon",
        "SVG icon from built-in registry.",
        ("name (icon name, required)", "size (12-96px, default 24)", "color (CSS color)", "label (accessible label)"),
        notes=("Common icons: arrow-right, check, star, user, calendar, chart-bar, trending-up, globe, zap, target",),
    ),
    ComponentRef(
        "kcl-animate",
        "Animation wrapper for child elements.",
        ("type (fade|slide-up|slide-down|slide-left|slide-right|scale|bounce|zoom)", "trigger (enter|hover|click)", "duration (100-3000ms)", "delay (0-5000ms)"),
    ),
    ComponentRef(
        "kcl-code",
        "Syntax-highlighted code block.",
        ("language (javascript|typescript|python|html|css|sql|json|markdown)", "theme (dark|light)", "line-numbers (boolean)"),
        '{ "code": "string" }',
    ),
    ComponentRef(
        "kcl-embed",
        "Responsive container for whitelisted external embeds.",
        ("src (URL, required, whitelisted)", "title (text)", "aspect-ratio (16/9|4/3|1/1|9/16)"),
        notes=("Whitelisted domains: youtube.com, vimeo.com, google.com (maps), codepen.io, loom.com",),
    ),
    ComponentRef(
        "kcl-source",
        "Document citation link.",
        ("doc-id (required)", "section (section reference)", "label (display text)"),
    ),
    ComponentRef(
        "kcl-chart",
        "SVG-based data visualization (REQUIRES data binding).",
        ("type (bar|line|pie|donut|scatter|area, default bar)", "legend (boolean)", "axis-labels (boolean)", "animate (boolean)"),
        '{ "labels": ["string"], "datasets": [{ "label": "string", "values": [number], "color?": "CSS color" }] }',
        ("MUST have data binding",),
    ),
    ComponentRef(
        "kcl-table",
        "Data table with optional sorting (REQUIRES data binding).",
        ("sortable (boolean)", "striped (boolean)", "compact (boolean)", "max-height (px)"),
        '{ "columns": [{ "key": "string", "label": "string" }], "rows": [{ [key]: value }] }',
        ("MUST have data binding",),
    ),
    ComponentRef(
        "kcl-timeline",
        "Vertical/horizontal timeline with event nodes (REQUIRES data binding).",
        ("direction (vertical|horizontal)", "connector-style (solid|dashed|dotted)", "animate (boolean)"),
        '{ "events": [{ "date": "string", "title": "string", "description?": "string" }] }',
        ("MUST have data binding",),
    ),
    ComponentRef(
        "kcl-compare",
        "Before/after comparison (REQUIRES data binding).",
        ("mode (slider|side-by-side)", "initial-position (0-100)"),
        '{ "before": { "src": "URL", "label": "string" }, "after": { "src": "URL", "label": "string" } }',
        ("MUST have data binding",),
    ),
)

BASE_SYSTEM_PROMPT = f"""You are a design studio code engine.
You generate HTML code using the KCL custom elements.

## Output Rules
- Output ONLY HTML fragments. No <!DOCTYPE>, no <html>, no <head>, no <body> tags.
- Your ENTIRE response must be KCL HTML starting with <kcl-slide>. No plan, preamble or commentary.
- Use ONLY the KCL components listed in the Component Reference. Use <kcl-layout> instead of div/section containers.
- Data binding uses <script data-for="elementId" type="application/json"> blocks placed AFTER the component they bind to.
- Every KCL component that needs data binding MUST have a unique id attribute.
- Do NOT include <script> tags other than data-binding scripts, and no inline event handlers.

## Multi-Frame Output
Separate frames with the delimiter `{FRAME_SEPARATOR}`.
Each block must be a complete, independent frame starting with <kcl-slide>.
"""

ACTION_INSTRUCTIONS: dict[DesignAction, str] = {
    DesignAction.GENERATE: f"""## Task: Generate New Frame(s)
Create new frame(s) from the user's prompt.
- Each frame must start with <kcl-slide> as root.
- Use <kcl-layout> for all multi-column arrangements.
- Include data binding scripts for all data-driven components.
- Separate multiple frames with {FRAME_SEPARATOR}.
- Every slide needs at least 5 KCL components and at least one of kcl-metric, kcl-chart, kcl-table, kcl-timeline, kcl-compare.
- Use realistic numbers, never placeholders like "X%" or "TBD".
- If the user does not give a slide count, generate 5 slides.
""",
    DesignAction.EDIT: """## Task: Edit Existing Frame
Modify the provided frame code according to the user's instruction.
- PRESERVE the overall structure unless restructuring is requested.
- Apply TARGETED changes and keep component IDs so data bindings stay linked.
- Output the COMPLETE modified frame code (not a diff).
""",
    DesignAction.STYLE: """## Task: Restyle Frame(s)
Change ONLY the visual appearance of the provided frame(s).
DO CHANGE: colors, fonts, spacing, background, animations, layout direction/alignment.
DO NOT CHANGE: text content, data values, component structure, or data binding <script> blocks.
Output the complete restyled code for each frame.
""",
    DesignAction.CONTENT: """## Task: Update Content
Update ONLY the data and text content in the provided frame.
DO NOT CHANGE: visual design decisions, component types, structure, or nesting.
Update data binding <script> blocks when data values change.
Output the complete updated frame code.
""",
    DesignAction.COMPOSE: f"""## Task: Compose Canvas from Document(s)
Generate a full multi-frame canvas from the provided document content.
- Cite sources with <kcl-source doc-id="..." section="..." label="...">.
- Extract numbers, dates and comparisons into metrics, charts, timelines and tables.
- Do NOT use <kcl-image> with invented URLs.
- Structure: title frame, key sections, data visualization, summary.
- Output multiple frames separated by {FRAME_SEPARATOR}.
""",
}

COMPOSITION_MODE_HINTS: dict[CompositionMode, str] = {
    CompositionMode.DECK: (
        "This is a presentation deck. Each frame is a slide rendered in a fixed 16:9 viewport; overflow is clipped.\n"
        "- Set a background color on every <kcl-slide>.\n"
        "- Data slides use kcl-metric, kcl-chart or kcl-table as the primary element.\n"
        "- Generate 5-8 slides unless the user specifies otherwise."
    ),
    CompositionMode.PAGE: (
        "This is a web page. Frames flow vertically as sections of a single scrollable page. Typical: 3-8 frames."
    ),
    CompositionMode.NOTEBOOK: (
        "This is a notebook/report. Mix narrative text with data visualizations. Typical: 5-15 frames.\n"
        "To add narrative text before a frame, output it immediately before that frame's <kcl-slide>:\n"
        f"{NARRATIVE_START}\n<p>Narrative text.</p>\n{NARRATIVE_END}\n"
        "Do NOT use <kcl-*> components inside narrative blocks."
    ),
    CompositionMode.WIDGET: (
        "This is a compact, embeddable widget. Frames are small and focused on a single metric or chart. "
        "Typical: 1-3 frames."
    ),
}

OUTLINE_INSTRUCTIONS = """
## Slide Outline Phase

You are in OUTLINE mode. Propose a slide-by-slide content plan. Do NOT generate HTML.
Respond with plain text ONLY: no HTML, no KCL tags, no code fences.

Start with a one-sentence summary of the deck theme, then output:

## Slide Outline

1. **[Slide Title]** — [Layout description]
   - [Specific content point with real data]
   - Hero component: [kcl-chart type=bar / kcl-timeline / kcl-metric grid / ...]

Reply **go ahead** to generate, or tell me what to change.

- Default to 5 slides if the user gives no count.
- No two consecutive slides may share the same hero component type.
"""

OUTLINE_REVISION_NOTE = (
    "\nThe user wants changes to the previous outline. Incorporate their feedback and output a REVISED outline "
    "in the same format. Keep all slides they did not mention unchanged."
)

OUTLINE_CONFIRMED_INSTRUCTIONS = f"""
## Generation from Confirmed Outline

The user has confirmed the slide outline. Generate the FULL KCL HTML for EVERY slide in it.
1. Follow the outline's titles, content points and hero components exactly.
2. Each slide MUST contain at least 5 KCL components (counting kcl-slide).
3. Each slide MUST include at least 1 data visualization component with complete data binding.
4. Separate frames with {FRAME_SEPARATOR}. Output raw HTML only, starting with <kcl-slide>.

### Confirmed Outline
"""

DENSITY_EXAMPLE = """
## Quality Reference — Minimum Density Expected
```html
<kcl-slide background="#0f172a" padding="48">
  <kcl-text level="h2" align="center" color="#f1f5f9">Q4 Performance Dashboard</kcl-text>
  <kcl-layout type="grid" columns="3" gap="20">
    <kcl-metric id="dm1" label="Revenue" prefix="$" format="compact" trend="up"></kcl-metric>
    <kcl-metric id="dm2" label="Active Users" format="compact" trend="up"></kcl-metric>
    <kcl-metric id="dm3" label="Churn Rate" suffix="%" trend="down"></kcl-metric>
  </kcl-layout>
  <kcl-chart id="dc1" type="area" legend axis-labels></kcl-chart>
</kcl-slide>
<script data-for="dm1" type="application/json">{"value":3200000,"delta":18.5}</script>
<script data-for="dm2" type="application/json">{"value":284000,"delta":12.3}</script>
<script data-for="dm3" type="application/json">{"value":2.1,"delta":-0.5}</script>
<script data-for="dc1" type="application/json">{"labels":["Q1","Q2","Q3","Q4"],"datasets":[{"label":"Revenue","values":[2.1,2.5,2.9,3.2]}]}</script>
```
"""

ERROR_PREVENTION_RULES = """
## Error Prevention Rules
1. Every frame MUST start with <kcl-slide> as the root element.
2. NEVER use <div>, <section>, <article>, <header>, <footer>, <main>, or <nav> as layout containers.
3. All <script data-for="X"> blocks MUST have type="application/json" and reference an element with id="X" in the same frame.
4. <kcl-chart>, <kcl-table>, <kcl-timeline> and <kcl-compare> REQUIRE a data binding script.
5. <kcl-image> MUST include an alt attribute.
6. All component IDs must be unique within a single frame.
7. Data binding script bodies must be valid JSON.
8. Do NOT output markdown code fences around the HTML.
"""


def build_kcl_reference(components: Sequence[ComponentRef] = KCL_COMPONENTS) -> str:
    lines = [f"## KCL Component Reference ({len(components)} components)\n"]
    for component in components:
        lines.append(f"### <{component.tag}>")
        lines.append(component.description)
        lines.append(f"**Attributes:** {'; '.join(component.attributes)}")
        if component.data_fields:
            lines.append(f"**Data Binding:** {component.data_fields}")
        lines.extend(f"- {note}" for note in component.notes)
        lines.append("")
    return "\n".join(lines)


def build_system_prompt(action: DesignAction, context: SystemPromptContext) -> str:
    """Assemble the system prompt for one attempt of a design action."""

    parts = [
        BASE_SYSTEM_PROMPT,
        build_kcl_reference(),
        ACTION_INSTRUCTIONS[action],
        f"\n## Current Canvas Mode: {context.composition_mode.value}",
        COMPOSITION_MODE_HINTS[context.composition_mode],
    ]

    if context.outline_phase is OutlinePhase.NEEDS_OUTLINE:
        parts.append(OUTLINE_INSTRUCTIONS)
    elif context.outline_phase is OutlinePhase.OUTLINE_REVISION:
        parts.append(OUTLINE_INSTRUCTIONS)
        parts.append(OUTLINE_REVISION_NOTE)
    elif context.confirmed_outline:
        parts.append(OUTLINE_CONFIRMED_INSTRUCTIONS)
        parts.append(context.confirmed_outline)
        parts.append(DENSITY_EXAMPLE)

    if context.brand_guidelines is not None:
        parts.append(_render_brand_guidelines(context.brand_guidelines))

    if context.memory_context:
        parts.append(f"\n{context.memory_context}")

    if context.retry_context is not None:
        parts.append(f"\n## RETRY ATTEMPT {context.retry_context.attempt + 1}")
        parts.append("Your previous output had validation errors. Fix the following:")
        parts.append(context.retry_context.previous_error)
        parts.append("Ensure your output is valid HTML using only KCL components.")

    parts.append(ERROR_PREVENTION_RULES)
    return "\n".join(parts)


def build_user_prompt(params: UserPromptParams) -> str:
    """Assemble the user message with the material the action works on."""

    parts: list[str] = []
    if params.conversation_history:
        parts.append("## Conversation History")
        for turn in params.conversation_history:
            role = "User" if turn.role == "user" else "Assistant"
            parts.append(f"{role}: {turn.content}")
        parts.append("")

    parts.append(f"## User Request\n{params.prompt}")

    if params.existing_code:
        parts.append(f"\n## Current Frame Code\n```html\n{params.existing_code}\n```")

    for frame in params.frame_codes:
        parts.append(f"\n## Frame {frame.frame_id}\n```html\n{frame.code}\n```")

    if params.doc_refs:
        parts.append("\n## Source Documents")
        for doc in params.doc_refs:
            parts.append(f"\n### {doc.title or doc.doc_id}")
            if doc.content:
                parts.append(doc.content)
            for heading, text in doc.sections:
                parts.append(f"#### {heading}\n{text}")

    if params.existing_frames:
        parts.append("\n## Existing Frames in Canvas")
        for summary in params.existing_frames:
            parts.append(f"- Frame {summary.sort_order + 1}: {summary.title or 'Untitled'} — {summary.code_summary}")

    return "\n".join(parts)


def _render_brand_guidelines(guidelines: BrandGuidelines) -> str:
    lines = ["", "## Brand Guidelines", "Apply these consistently:"]
    fields = (
        ("Primary color", guidelines.primary_color),
        ("Secondary color", guidelines.secondary_color),
        ("Accent color", guidelines.accent_color),
        ("Font family", guidelines.font_family),
        ("Visual style", guidelines.style),
    )
    lines.extend(f"- {label}: {value}" for label, value in fields if value)
    return "\n".join(lines)
