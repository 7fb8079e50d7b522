"""
Mermaid rendering for Flowchart objects.

Deterministic: nodes in creation order, then edges in creation order.
"""
from __future__ import annotations

from cppflow.config import SETTINGS
from cppflow.graph_builder import Flowchart, FlowNodeKind

SHAPES = {
    "rectangle": ("[", "]"),
    "rounded": ("(", ")"),
    "stadium": ("([", "])"),
    "diamond": ("{", "}"),
}

KIND_SHAPES = {
    FlowNodeKind.FUNCTION: "stadium",
    FlowNodeKind.IF: "diamond",
    FlowNodeKind.FOR: "diamond",
    FlowNodeKind.WHILE: "diamond",
    FlowNodeKind.RETURN: "rounded",
}


def _escape_label(label: str) -> str:
    # Mermaid node labels can break on quotes/brackets; keep it simple.
    return (
        label.replace('"', "'")
        .replace("[", "(")
        .replace("]", ")")
        .replace("{", "(")
        .replace("}", ")")
        .replace("|", "/")
    )


def _truncate(label: str, max_chars: int) -> str:
    if max_chars <= 0 or len(label) <= max_chars:
        return label
    return label[: max(1, max_chars - 3)].rstrip() + "..."


def _mermaid_node_id(node_id: int) -> str:
    return f"n{node_id}"


def flowchart_to_mermaid(
    flowchart: Flowchart,
    *,
    direction: str | None = None,
    max_label_chars: int | None = None,
) -> str:
    """
    Produce a Mermaid flowchart string.

    Args:
        flowchart: Flowchart from GraphBuilder
        direction: Mermaid direction (TD, LR, ...); default from settings
        max_label_chars: Truncate labels longer than this; 0 disables

    Returns:
        Mermaid source ending with a newline
    """
    direction = direction or SETTINGS.mermaid_direction
    if max_label_chars is None:
        max_label_chars = SETTINGS.max_label_chars

    lines = [f"flowchart {direction}"]
    for node in flowchart.nodes:
        shape_open, shape_close = SHAPES[KIND_SHAPES.get(node.kind, "rectangle")]
        label = _escape_label(_truncate(node.label, max_label_chars))
        lines.append(f'    {_mermaid_node_id(node.id)}{shape_open}"{label}"{shape_close}')

    for edge in flowchart.edges:
        lines.append(
            f"    {_mermaid_node_id(edge.source)} -->|{edge.label.value}| {_mermaid_node_id(edge.target)}"
        )

    return "\n".join(lines) + "\n"
