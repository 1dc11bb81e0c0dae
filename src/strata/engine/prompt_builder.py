"""Prompt construction from an assembled context.

Pure formatting: no budgeting happens here.  Separate module because the
section layout evolves independently of assembly.
"""

from __future__ import annotations

from strata.models.context import AssembledContext

SECTION_TITLES = (
    ("domain_part", "Domain knowledge"),
    ("entity_part", "Entity memory"),
    ("session_part", "Session"),
)


def _section(title: str, body: str) -> str:
    return f"## {title}\n\n{body}"


def to_prompt(assembled: AssembledContext, instruction: str | None = None) -> str:
    """Format *assembled* as a prompt.

    The instruction (if any) comes first, followed by one markdown section
    per non-empty layer in domain, entity, session order.
    """
    blocks: list[str] = []
    if instruction:
        blocks.append(instruction.strip())
    for attr, title in SECTION_TITLES:
        body = getattr(assembled, attr)
        if body:
            blocks.append(_section(title, body))
    return "\n\n".join(blocks) + "\n" if blocks else ""
