"""Tests for the AST model and its plain-dict form."""

from ast_builders import block, call, expr, for_, func, if_, ret
from cppflow.ast_model import NodeKind, ast_from_dict, ast_to_dict, make_node
from cppflow.graph_builder import build_flowchart


def test_make_node_lays_slots_first():
    extra = call("log")
    loop = make_node(
        NodeKind.FOR,
        "for (...)",
        children=[extra],
        body=block(ret()),
        condition=expr("i < n"),
        init=expr("i = 0"),
    )
    assert loop.children[0] is loop.init
    assert loop.children[1] is loop.condition
    assert loop.children[2] is loop.body
    assert loop.children[3] is extra


def test_make_node_does_not_duplicate_slot_children():
    body = block(ret())
    node = make_node(NodeKind.WHILE, "while (x) {}", condition=expr("x"), body=body, children=[body])
    assert len(node.children) == 2


def test_walk_is_preorder():
    tree = func("f", if_("c", call("a")), ret())
    kinds = [n.kind for n in tree.walk()]
    assert kinds[:4] == [NodeKind.FUNCTION_DEF, NodeKind.COMPOUND_BLOCK, NodeKind.IF, NodeKind.BINARY_OP]


def test_unknown_kind_maps_to_other():
    node = ast_from_dict({"kind": "TryCatch", "text": "try { } catch (...) { }"})
    assert node.kind is NodeKind.OTHER
    assert node.text.startswith("try")


def test_out_of_range_slot_is_dropped():
    node = ast_from_dict({
        "kind": "If",
        "text": "if (x) y();",
        "children": [{"kind": "BinaryOp", "text": "x"}],
        "slots": {"condition": 0, "body": 5, "bogus": 0},
    })
    assert node.condition is node.children[0]
    assert node.body is None


def test_dict_form_rebuilds_same_flowchart():
    tree = func("f", for_(block(if_("i == 2", call("g"), ret("return 1;")))), ret())
    data = ast_to_dict(tree)
    rebuilt = ast_from_dict(data)

    assert ast_to_dict(rebuilt) == data
    assert build_flowchart(rebuilt).to_dict() == build_flowchart(tree).to_dict()
    assert data["name"] == "f"
    assert data["slots"] == {"body": 0}
