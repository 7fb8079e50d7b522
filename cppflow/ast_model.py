"""
Typed AST shared by the graph builder and the metrics analyzer.

The tree is produced outside the core (see cppflow.parser for the
tree-sitter adapter, or ast_from_dict for trees built by another parser)
and is read-only once built.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Optional

from cppflow.logging_utils import get_logger

logger = get_logger(__name__)


class NodeKind(Enum):
    """Fixed statement/expression taxonomy understood by the core."""
    FUNCTION_DEF = "FunctionDef"
    IF = "If"
    FOR = "For"
    WHILE = "While"
    DO_WHILE = "DoWhile"
    RETURN = "Return"
    DECLARATION = "Declaration"
    CALL = "Call"
    BINARY_OP = "BinaryOp"
    COMPOUND_BLOCK = "CompoundBlock"
    ELSE = "Else"
    SWITCH = "Switch"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: str) -> "NodeKind":
        """Map a kind name to a NodeKind; unknown names become OTHER."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


LOOP_KINDS = frozenset({NodeKind.FOR, NodeKind.WHILE, NodeKind.DO_WHILE})
CONDITIONAL_KINDS = frozenset({NodeKind.IF, NodeKind.SWITCH})

# Order in which slot nodes are laid out at the front of `children`
SLOT_NAMES = ("init", "condition", "increment", "body", "else_branch")


@dataclass(frozen=True, eq=False)
class AstNode:
    """
    One node of the input tree.

    Slots (`condition`, `init`, `increment`, `body`, `else_branch`) are
    either None or the very object found in `children`.
    """
    kind: NodeKind
    text: str = ""
    children: tuple[AstNode, ...] = ()
    name: Optional[str] = None
    line: int = 0
    condition: Optional[AstNode] = None
    init: Optional[AstNode] = None
    increment: Optional[AstNode] = None
    body: Optional[AstNode] = None
    else_branch: Optional[AstNode] = None

    def slot(self, slot_name: str) -> Optional[AstNode]:
        return getattr(self, slot_name)

    def walk(self) -> Iterator[AstNode]:
        """Pre-order iteration over this node and its descendants."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


def make_node(
    kind: NodeKind,
    text: str = "",
    *,
    children: tuple[AstNode, ...] | list[AstNode] = (),
    name: str | None = None,
    line: int = 0,
    condition: AstNode | None = None,
    init: AstNode | None = None,
    increment: AstNode | None = None,
    body: AstNode | None = None,
    else_branch: AstNode | None = None,
) -> AstNode:
    """Build an AstNode, placing slot nodes first in `children`."""
    slots = {
        "init": init,
        "condition": condition,
        "increment": increment,
        "body": body,
        "else_branch": else_branch,
    }
    slot_nodes = [slots[s] for s in SLOT_NAMES if slots[s] is not None]
    laid_out = list(slot_nodes)
    laid_out.extend(c for c in children if all(c is not s for s in slot_nodes))
    return AstNode(
        kind=kind,
        text=text,
        children=tuple(laid_out),
        name=name,
        line=line,
        **slots,
    )


def ast_from_dict(data: dict[str, Any]) -> AstNode:
    """
    Build an AstNode tree from its plain-dict form.

    Expected shape::

        {"kind": "If", "text": "...", "name": null, "line": 3,
         "children": [...], "slots": {"condition": 0, "body": 1}}

    Slot values are indexes into `children`.
    """
    children = tuple(ast_from_dict(c) for c in data.get("children") or ())
    slots: dict[str, AstNode] = {}
    for slot_name, index in (data.get("slots") or {}).items():
        if slot_name not in SLOT_NAMES:
            logger.warning(f"Ignoring unknown slot '{slot_name}' on {data.get('kind')} node")
            continue
        if not isinstance(index, int) or not 0 <= index < len(children):
            logger.warning(f"Ignoring out-of-range slot {slot_name}={index!r} on {data.get('kind')} node")
            continue
        slots[slot_name] = children[index]

    return AstNode(
        kind=NodeKind.parse(str(data.get("kind", "Other"))),
        text=data.get("text") or "",
        children=children,
        name=data.get("name"),
        line=int(data.get("line") or 0),
        **slots,
    )


def ast_to_dict(node: AstNode) -> dict[str, Any]:
    """Inverse of ast_from_dict."""
    slots = {}
    for slot_name in SLOT_NAMES:
        target = node.slot(slot_name)
        if target is None:
            continue
        for index, child in enumerate(node.children):
            if child is target:
                slots[slot_name] = index
                break

    data: dict[str, Any] = {
        "kind": node.kind.value,
        "text": node.text,
        "line": node.line,
        "children": [ast_to_dict(c) for c in node.children],
    }
    if node.name is not None:
        data["name"] = node.name
    if slots:
        data["slots"] = slots
    return data
