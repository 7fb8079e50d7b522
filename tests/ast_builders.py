"""Small factories for hand-built ASTs used across the tests."""

from cppflow.ast_model import AstNode, NodeKind, make_node


def expr(text: str) -> AstNode:
    return make_node(NodeKind.BINARY_OP, text)


def decl(text: str = "int x = 0;") -> AstNode:
    return make_node(NodeKind.DECLARATION, text)


def call(name: str, text: str | None = None) -> AstNode:
    return make_node(NodeKind.CALL, text or f"{name}();", name=name)


def ret(text: str = "return 0;", *children: AstNode) -> AstNode:
    return make_node(NodeKind.RETURN, text, children=children)


def other(text: str) -> AstNode:
    return make_node(NodeKind.OTHER, text)


def block(*stmts: AstNode) -> AstNode:
    return make_node(NodeKind.COMPOUND_BLOCK, "{ ... }", children=stmts)


def if_(cond: str, then: AstNode | None, else_: AstNode | None = None) -> AstNode:
    else_node = make_node(NodeKind.ELSE, "else ...", body=else_) if else_ is not None else None
    return make_node(NodeKind.IF, f"if ({cond}) ...", condition=expr(cond), body=then, else_branch=else_node)


def for_(body: AstNode | None, cond: str = "i < n", init: str = "int i = 0;", incr: str = "i++") -> AstNode:
    return make_node(
        NodeKind.FOR,
        f"for ({init} {cond}; {incr}) ...",
        init=decl(init),
        condition=expr(cond),
        increment=expr(incr),
        body=body,
    )


def while_(cond: str, body: AstNode | None) -> AstNode:
    return make_node(NodeKind.WHILE, f"while ({cond}) ...", condition=expr(cond), body=body)


def do_while(body: AstNode | None, cond: str) -> AstNode:
    return make_node(NodeKind.DO_WHILE, f"do ... while ({cond});", condition=expr(cond), body=body)


def func(name: str, *stmts: AstNode) -> AstNode:
    return make_node(NodeKind.FUNCTION_DEF, f"void {name}() {{ ... }}", name=name, body=block(*stmts))


def nested_loops(k: int, inner: AstNode) -> AstNode:
    node = inner
    for _ in range(k):
        node = for_(block(node))
    return node
