"""
Flowchart (control-flow graph) construction from the typed AST.

Every AST node visited yields a fragment: the id of the flow node where
control enters it, plus the still-open exits that must be wired to
whatever follows. Sequencing a block wires each fragment's exits to the
next fragment's entry; branches and loops add their labeled edges.

Node ids are handed out in pre-order, so identical trees always yield
identical flowcharts.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from cppflow.ast_model import AstNode, NodeKind
from cppflow.config import SETTINGS
from cppflow.errors import AstTooDeepError, EmptyInputError, MalformedNode
from cppflow.logging_utils import get_logger

logger = get_logger(__name__)


class FlowNodeKind(Enum):
    """Kinds of flowchart nodes"""
    FUNCTION = "function"
    IF = "if"
    FOR = "for"
    WHILE = "while"
    RETURN = "return"
    DECLARATION = "declaration"
    CALL = "call"
    OPERATION = "operation"
    OTHER = "other"


class EdgeLabel(Enum):
    """Labels stamped on flowchart edges"""
    NEXT = "next"  # Sequential flow
    TRUE = "true"  # Condition held
    FALSE = "false"  # Condition failed / loop exit
    BODY = "body"  # Loop header into its body
    LOOP = "loop"  # Back edge to the loop header


LEAF_KINDS = {
    NodeKind.RETURN: FlowNodeKind.RETURN,
    NodeKind.DECLARATION: FlowNodeKind.DECLARATION,
    NodeKind.CALL: FlowNodeKind.CALL,
    NodeKind.BINARY_OP: FlowNodeKind.OPERATION,
}

LOOP_HEADER_KINDS = {
    NodeKind.FOR: FlowNodeKind.FOR,
    NodeKind.WHILE: FlowNodeKind.WHILE,
    NodeKind.DO_WHILE: FlowNodeKind.WHILE,
}

MISSING_CONDITION = "<missing condition>"
ANONYMOUS_FUNCTION = "<anonymous>"


@dataclass(frozen=True)
class FlowNode:
    id: int
    kind: FlowNodeKind
    label: str


@dataclass(frozen=True)
class FlowEdge:
    source: int
    target: int
    label: EdgeLabel


@dataclass(frozen=True)
class Flowchart:
    """Nodes in creation order, edges in creation order, and the entry id."""
    nodes: Tuple[FlowNode, ...]
    edges: Tuple[FlowEdge, ...]
    entry: Optional[int]
    diagnostics: Tuple[MalformedNode, ...] = ()

    def node(self, node_id: int) -> FlowNode:
        for n in self.nodes:
            if n.id == node_id:
                return n
        raise KeyError(node_id)

    def out_edges(self, node_id: int) -> List[FlowEdge]:
        return [e for e in self.edges if e.source == node_id]

    def in_edges(self, node_id: int) -> List[FlowEdge]:
        return [e for e in self.edges if e.target == node_id]

    def to_dict(self) -> dict:
        """Plain, JSON-serializable record in creation order."""
        return {
            "entry": self.entry,
            "nodes": [
                {"id": n.id, "kind": n.kind.value, "label": n.label}
                for n in self.nodes
            ],
            "edges": [
                {"from": e.source, "to": e.target, "label": e.label.value}
                for e in self.edges
            ],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


Exit = Tuple[int, EdgeLabel]


@dataclass
class _Fragment:
    """Entry node of a built subgraph plus its still-unconnected exits."""
    entry: Optional[int] = None
    exits: List[Exit] = field(default_factory=list)


def _clean(text: str) -> str:
    """Collapse whitespace runs so multi-line snippets read as one label."""
    return " ".join(text.split())


def _clause(node: Optional[AstNode]) -> str:
    if node is None:
        return ""
    return _clean(node.text).rstrip(";").strip()


def _dedupe(exits: Iterable[Exit]) -> List[Exit]:
    seen = set()
    out = []
    for ex in exits:
        if ex not in seen:
            seen.add(ex)
            out.append(ex)
    return out


class GraphBuilder:
    """
    Builds a Flowchart from an AstNode tree.

    One builder owns the id counter and the accumulating node/edge lists
    for a build; `build` resets them, so ids always start at 0.
    """

    def __init__(self, max_depth: int | None = None):
        self.max_depth = SETTINGS.max_ast_depth if max_depth is None else max_depth
        self._reset()

    def _reset(self) -> None:
        self._next_id = 0
        self._nodes: List[FlowNode] = []
        self._kinds: dict[int, FlowNodeKind] = {}
        self._edges: List[FlowEdge] = []
        self._edge_keys: set[tuple[int, int, EdgeLabel]] = set()
        self._diagnostics: List[MalformedNode] = []

    def build(self, root: AstNode) -> Flowchart:
        """
        Build the flowchart for `root`.

        Raises:
            EmptyInputError: root is None
            AstTooDeepError: the tree nests deeper than max_depth
        """
        if root is None:
            raise EmptyInputError("No AST root supplied")

        self._reset()
        self._visit(root, 0)

        flowchart = Flowchart(
            nodes=tuple(self._nodes),
            edges=tuple(self._edges),
            entry=self._nodes[0].id if self._nodes else None,
            diagnostics=tuple(self._diagnostics),
        )
        logger.debug(
            f"Built flowchart: {len(flowchart.nodes)} nodes, {len(flowchart.edges)} edges, "
            f"{len(flowchart.diagnostics)} malformed nodes"
        )
        return flowchart

    # ------------------------------------------------------------------ #
    # Graph primitives
    # ------------------------------------------------------------------ #

    def _create_node(self, kind: FlowNodeKind, label: str) -> int:
        node_id = self._next_id
        self._next_id += 1
        self._nodes.append(FlowNode(id=node_id, kind=kind, label=label))
        self._kinds[node_id] = kind
        return node_id

    def _add_edge(self, source: int, target: int, label: EdgeLabel) -> None:
        key = (source, target, label)
        if key in self._edge_keys:
            return
        self._edge_keys.add(key)
        self._edges.append(FlowEdge(source=source, target=target, label=label))

    def _connect(self, exits: Iterable[Exit], target: int) -> None:
        for source, label in exits:
            self._add_edge(source, target, label)

    def _malformed(self, node: AstNode, message: str) -> None:
        diag = MalformedNode(node_kind=node.kind.value, text=_clean(node.text), message=message, line=node.line)
        self._diagnostics.append(diag)
        logger.warning(f"Malformed {node.kind.value} node at line {node.line}: {message}")

    # ------------------------------------------------------------------ #
    # Traversal
    # ------------------------------------------------------------------ #

    def _visit(self, node: AstNode, depth: int) -> _Fragment:
        if depth > self.max_depth:
            raise AstTooDeepError(depth, self.max_depth)

        kind = node.kind

        if kind is NodeKind.FUNCTION_DEF:
            return self._visit_function(node, depth)

        elif kind is NodeKind.COMPOUND_BLOCK:
            return self._sequence(node.children, depth)

        elif kind is NodeKind.ELSE:
            return self._sequence([node.body] if node.body is not None else node.children, depth)

        elif kind is NodeKind.IF:
            return self._visit_if(node, depth)

        elif kind in LOOP_HEADER_KINDS:
            return self._visit_loop(node, depth)

        elif kind in LEAF_KINDS:
            return self._leaf(LEAF_KINDS[kind], _clean(node.text) or f"<{kind.value}>")

        # Switch, break, continue, goto, try and anything unrecognized pass
        # through as a single Other node.
        return self._leaf(FlowNodeKind.OTHER, _clean(node.text) or f"<{kind.value}>")

    def _leaf(self, kind: FlowNodeKind, label: str) -> _Fragment:
        node_id = self._create_node(kind, label)
        return _Fragment(entry=node_id, exits=[(node_id, EdgeLabel.NEXT)])

    def _sequence(self, statements: Iterable[AstNode], depth: int) -> _Fragment:
        """Chain statements left to right; zero-entry fragments pass pending exits through."""
        entry: Optional[int] = None
        pending: List[Exit] = []

        for stmt in statements:
            frag = self._visit(stmt, depth + 1)
            # Function definitions are detached components
            if stmt.kind is NodeKind.FUNCTION_DEF or frag.entry is None:
                continue
            self._connect(pending, frag.entry)
            if entry is None:
                entry = frag.entry
            pending = frag.exits

        return _Fragment(entry=entry, exits=pending)

    def _visit_optional(self, node: Optional[AstNode], depth: int) -> _Fragment:
        if node is None:
            return _Fragment()
        return self._visit(node, depth + 1)

    def _visit_function(self, node: AstNode, depth: int) -> _Fragment:
        name = node.name
        if not name:
            self._malformed(node, "function definition without a resolvable name")
            name = ANONYMOUS_FUNCTION

        func_id = self._create_node(FlowNodeKind.FUNCTION, f"Function: {name}")

        if node.body is not None:
            body = self._visit(node.body, depth + 1)
        else:
            body = self._sequence(node.children, depth)

        if body.entry is not None:
            self._add_edge(func_id, body.entry, EdgeLabel.NEXT)

        # Body exits are terminal: nothing is chained after a function.
        return _Fragment(entry=func_id, exits=[])

    def _visit_if(self, node: AstNode, depth: int) -> _Fragment:
        if node.condition is None:
            self._malformed(node, "if statement without a condition")
            label = MISSING_CONDITION
        else:
            label = _clean(node.condition.text) or MISSING_CONDITION

        decision = self._create_node(FlowNodeKind.IF, label)
        exits: List[Exit] = []

        then_frag = self._visit_optional(node.body, depth)
        if then_frag.entry is not None:
            self._add_edge(decision, then_frag.entry, EdgeLabel.TRUE)
            exits.extend(then_frag.exits)
        else:
            exits.append((decision, EdgeLabel.TRUE))

        else_frag = self._visit_optional(node.else_branch, depth)
        if else_frag.entry is not None:
            self._add_edge(decision, else_frag.entry, EdgeLabel.FALSE)
            exits.extend(else_frag.exits)
        else:
            # Skipped branch flows straight to whatever follows
            exits.append((decision, EdgeLabel.FALSE))

        return _Fragment(entry=decision, exits=_dedupe(exits))

    def _loop_label(self, node: AstNode) -> str:
        cond = _clause(node.condition)

        if node.kind is NodeKind.FOR:
            init, incr = _clause(node.init), _clause(node.increment)
            if not (init or cond or incr):
                return "for (;;)"
            if init or incr:
                return f"{init}; {cond}; {incr}".strip()
            return cond

        if not cond:
            self._malformed(node, f"{node.kind.value} loop without a condition")
            cond = MISSING_CONDITION

        if node.kind is NodeKind.DO_WHILE:
            return f"do ... while ({cond})"
        return cond

    def _visit_loop(self, node: AstNode, depth: int) -> _Fragment:
        header = self._create_node(LOOP_HEADER_KINDS[node.kind], self._loop_label(node))
        body = self._visit_optional(node.body, depth)

        if body.entry is None:
            self._add_edge(header, header, EdgeLabel.LOOP)
            entry = header
        else:
            self._add_edge(header, body.entry, EdgeLabel.BODY)
            self._close_loop(header, body.exits)
            # do-while runs its body once before the first condition check
            entry = body.entry if node.kind is NodeKind.DO_WHILE else header

        return _Fragment(entry=entry, exits=[(header, EdgeLabel.FALSE)])

    def _close_loop(self, header: int, exits: List[Exit]) -> None:
        """Wire body exits back to the header."""
        has_back_edge = False
        for source, label in exits:
            if label in (EdgeLabel.TRUE, EdgeLabel.FALSE) and self._kinds[source] is FlowNodeKind.IF:
                # Pass-through branch of an if keeps its branch label
                self._add_edge(source, header, label)
            else:
                self._add_edge(source, header, EdgeLabel.LOOP)
                has_back_edge = True

        if not has_back_edge and exits:
            self._add_edge(exits[-1][0], header, EdgeLabel.LOOP)


def build_flowchart(root: AstNode) -> Flowchart:
    """Build a flowchart with a fresh GraphBuilder."""
    return GraphBuilder().build(root)
