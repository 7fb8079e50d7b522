"""
tree-sitter adapter: C/C++ source text -> cppflow AstNode tree.

Only the shapes the core understands are mapped to their own kinds;
every other statement becomes an Other node carrying its raw text.
"""
from __future__ import annotations

from tree_sitter import Language, Node, Parser
from tree_sitter_cpp import language as cpp_language

from cppflow.ast_model import AstNode, NodeKind, make_node
from cppflow.config import SETTINGS
from cppflow.errors import AstTooDeepError, EmptyInputError, SourceSyntaxError
from cppflow.logging_utils import get_logger

logger = get_logger(__name__)

OPERATION_TYPES = {
    "assignment_expression",
    "binary_expression",
    "update_expression",
    "unary_expression",
    "compound_assignment_expression",
}

BLOCK_TYPES = {"translation_unit", "compound_statement", "declaration_list", "field_declaration_list"}

# Scopes whose `body` field holds declarations, function definitions included
SCOPE_TYPES = {
    "namespace_definition",
    "class_specifier",
    "struct_specifier",
    "union_specifier",
    "linkage_specification",
}

# Converted recursively, one depth level each. Everything else is expression
# shaped and converted with an explicit stack.
STATEMENT_TYPES = BLOCK_TYPES | SCOPE_TYPES | {
    "template_declaration",
    "function_definition",
    "if_statement",
    "else_clause",
    "for_statement",
    "for_range_loop",
    "while_statement",
    "do_statement",
    "switch_statement",
    "return_statement",
    "declaration",
    "expression_statement",
}

SKIPPED_TYPES = {"comment", "access_specifier"}

IDENTIFIER_TYPES = {"identifier", "field_identifier", "qualified_identifier", "destructor_name", "operator_name"}


def _set_parser_language(parser: Parser) -> None:
    """Set the C++ language for the tree-sitter parser."""
    raw = cpp_language()
    lang: Language
    if isinstance(raw, Language):
        lang = raw
    else:
        lang = Language(raw)  # type: ignore[arg-type]

    if hasattr(parser, "set_language"):
        parser.set_language(lang)  # type: ignore[attr-defined]
    else:
        parser.language = lang  # type: ignore[assignment]


def _node_text(source_bytes: bytes, node: Node) -> str:
    """Extract text from a tree-sitter node."""
    return source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")


def _first_error(root: Node) -> Node | None:
    """Return the first ERROR or MISSING node in document order."""
    stack = [root]
    while stack:
        n = stack.pop()
        if n.type == "ERROR" or n.is_missing:
            return n
        if n.has_error:
            stack.extend(reversed(n.children))
    return None


def _function_name(source_bytes: bytes, node: Node) -> str | None:
    """Follow the declarator chain of a function_definition to its name."""
    decl = node.child_by_field_name("declarator")
    while decl is not None:
        if decl.type in IDENTIFIER_TYPES:
            return _node_text(source_bytes, decl).strip()
        inner = decl.child_by_field_name("declarator")
        if inner is None:
            # Fall back to the first identifier-like child
            for c in decl.named_children:
                if c.type in IDENTIFIER_TYPES:
                    return _node_text(source_bytes, c).strip()
            return None
        decl = inner
    return None


class CppParser:
    """
    Parses C/C++ source with tree-sitter-cpp and converts the concrete
    syntax tree into the core's AstNode taxonomy.
    """

    def __init__(self, max_depth: int | None = None):
        self.parser = Parser()
        _set_parser_language(self.parser)
        self.max_depth = SETTINGS.max_ast_depth if max_depth is None else max_depth
        self._source = b""

    def parse(self, source: str) -> AstNode:
        """
        Parse source text into an AstNode rooted at a CompoundBlock.

        Raises:
            EmptyInputError: source is empty or whitespace only
            SourceSyntaxError: tree-sitter reported ERROR/MISSING nodes
        """
        if not source or not source.strip():
            raise EmptyInputError("No code provided")

        self._source = source.encode("utf-8", errors="ignore")
        tree = self.parser.parse(self._source)
        root = tree.root_node

        if root.has_error:
            bad = _first_error(root)
            line, column = (bad.start_point[0] + 1, bad.start_point[1] + 1) if bad is not None else (0, 0)
            what = f"missing '{bad.type}'" if bad is not None and bad.is_missing else "unexpected input"
            raise SourceSyntaxError(f"Syntax error: {what}", line=line, column=column)

        ast_root = self._convert(root, 0)
        logger.debug(f"Parsed {len(self._source)} bytes into {sum(1 for _ in ast_root.walk())} AST nodes")
        return ast_root

    def _text(self, node: Node) -> str:
        return _node_text(self._source, node)

    def _statements(self, node: Node, depth: int) -> list[AstNode]:
        """Convert every named child in statement position (nothing dropped)."""
        return [
            self._convert(c, depth + 1)
            for c in node.named_children
            if c.type not in SKIPPED_TYPES
        ]

    def _expressions(self, node: Node, depth: int) -> list[AstNode]:
        """Convert named children in expression position, dropping bare leaves."""
        out = []
        for c in node.named_children:
            if c.type in SKIPPED_TYPES or c.named_child_count == 0:
                continue
            out.append(self._convert(c, depth + 1))
        return out

    def _field(self, node: Node, name: str, depth: int) -> AstNode | None:
        child = node.child_by_field_name(name)
        if child is None:
            return None
        return self._convert(child, depth + 1)

    def _condition(self, node: Node, depth: int) -> AstNode | None:
        """Unwrap condition_clause / parenthesized_expression to the bare expression."""
        cond = node.child_by_field_name("condition")
        while cond is not None and cond.type in {"condition_clause", "parenthesized_expression"}:
            inner = cond.child_by_field_name("value")
            if inner is None:
                named = [c for c in cond.named_children if c.type not in SKIPPED_TYPES]
                inner = named[-1] if named else None
            if inner is None:
                break
            cond = inner
        if cond is None:
            return None
        return self._convert(cond, depth + 1)

    def _convert(self, node: Node, depth: int) -> AstNode:
        t = node.type
        if t not in STATEMENT_TYPES:
            return self._convert_expression(node, depth)

        if depth > self.max_depth:
            raise AstTooDeepError(depth, self.max_depth)

        text = self._text(node)
        line = node.start_point[0] + 1

        if t in BLOCK_TYPES:
            return make_node(NodeKind.COMPOUND_BLOCK, text, children=self._statements(node, depth), line=line)

        if t in SCOPE_TYPES:
            body = self._field(node, "body", depth)
            return make_node(NodeKind.COMPOUND_BLOCK, text, children=[body] if body is not None else (), line=line)

        if t == "template_declaration":
            members = [
                self._convert(c, depth + 1)
                for c in node.named_children
                if c.type not in SKIPPED_TYPES and c.type != "template_parameter_list"
            ]
            return make_node(NodeKind.COMPOUND_BLOCK, text, children=members, line=line)

        if t == "function_definition":
            return make_node(
                NodeKind.FUNCTION_DEF,
                text,
                name=_function_name(self._source, node),
                body=self._field(node, "body", depth),
                line=line,
            )

        if t == "if_statement":
            return make_node(
                NodeKind.IF,
                text,
                condition=self._condition(node, depth),
                body=self._field(node, "consequence", depth),
                else_branch=self._field(node, "alternative", depth),
                line=line,
            )

        if t == "else_clause":
            stmts = self._statements(node, depth)
            return make_node(NodeKind.ELSE, text, body=stmts[0] if stmts else None, children=stmts, line=line)

        if t == "for_statement":
            return make_node(
                NodeKind.FOR,
                text,
                init=self._field(node, "initializer", depth),
                condition=self._field(node, "condition", depth),
                increment=self._field(node, "update", depth),
                body=self._field(node, "body", depth),
                line=line,
            )

        if t == "for_range_loop":
            body_node = node.child_by_field_name("body")
            header_end = body_node.start_byte if body_node is not None else node.end_byte
            header = self._source[node.start_byte : header_end].decode("utf-8", errors="ignore")
            # "for (auto &x : xs)" -> "auto &x : xs"
            header = header.strip()
            if header.startswith("for"):
                header = header[3:].strip()
            if header.startswith("(") and header.endswith(")"):
                header = header[1:-1]
            cond = make_node(NodeKind.OTHER, header.strip(), line=line)
            right = self._field(node, "right", depth)
            return make_node(
                NodeKind.FOR,
                text,
                condition=cond,
                body=self._field(node, "body", depth),
                children=[right] if right is not None else (),
                line=line,
            )

        if t == "while_statement":
            return make_node(
                NodeKind.WHILE,
                text,
                condition=self._condition(node, depth),
                body=self._field(node, "body", depth),
                line=line,
            )

        if t == "do_statement":
            return make_node(
                NodeKind.DO_WHILE,
                text,
                condition=self._condition(node, depth),
                body=self._field(node, "body", depth),
                line=line,
            )

        if t == "switch_statement":
            return make_node(
                NodeKind.SWITCH,
                text,
                condition=self._condition(node, depth),
                body=self._field(node, "body", depth),
                line=line,
            )

        if t == "return_statement":
            return make_node(NodeKind.RETURN, text, children=self._expressions(node, depth), line=line)

        if t == "declaration":
            return make_node(NodeKind.DECLARATION, text, children=self._expressions(node, depth), line=line)

        # expression_statement
        exprs = [c for c in node.named_children if c.type not in SKIPPED_TYPES]
        if len(exprs) == 1:
            inner = self._convert(exprs[0], depth + 1)
            # Keep the statement's own text (with ';') as the label source
            return make_node(
                inner.kind,
                text,
                name=inner.name,
                children=inner.children,
                line=line,
            )
        return make_node(NodeKind.OTHER, text, children=self._expressions(node, depth), line=line)

    def _operands(self, node: Node) -> list[Node]:
        """Non-leaf children of an expression; for calls, the callee's and the arguments'."""
        if node.type == "call_expression":
            parents = [node.child_by_field_name("function"), node.child_by_field_name("arguments")]
        else:
            parents = [node]
        return [
            c
            for p in parents
            if p is not None
            for c in p.named_children
            if c.type not in SKIPPED_TYPES and c.named_child_count > 0
        ]

    def _convert_expression(self, node: Node, depth: int) -> AstNode:
        """
        Convert an expression-shaped subtree without recursion.

        Operator chains such as `1 + 1 + ... + 1` nest one level per term, so
        they do not count against max_depth. Statements found inside (lambda
        bodies, try blocks, case bodies) go back through _convert.
        """
        built: list[AstNode] = []
        stack: list[tuple[Node, bool]] = [(node, False)]
        while stack:
            n, ready = stack.pop()
            if not ready:
                if n is not node and n.type in STATEMENT_TYPES:
                    built.append(self._convert(n, depth + 1))
                    continue
                stack.append((n, True))
                stack.extend((c, False) for c in reversed(self._operands(n)))
                continue

            start = len(built) - len(self._operands(n))
            children = built[start:]
            del built[start:]
            built.append(self._expression_node(n, children))

        return built[0]

    def _expression_node(self, node: Node, children: list[AstNode]) -> AstNode:
        t = node.type
        text = self._text(node)
        line = node.start_point[0] + 1

        if t == "call_expression":
            fn = node.child_by_field_name("function")
            return make_node(
                NodeKind.CALL,
                text,
                name=self._text(fn).strip() if fn is not None else None,
                children=children,
                line=line,
            )

        if t in OPERATION_TYPES:
            return make_node(NodeKind.BINARY_OP, text, children=children, line=line)

        # Statements the core does not model (break, continue, goto, try, case
        # labels, preprocessor lines, ...) and every other expression.
        return make_node(NodeKind.OTHER, text, children=children, line=line)


def parse_source(source: str) -> AstNode:
    """Parse source text with a fresh CppParser."""
    return CppParser().parse(source)
