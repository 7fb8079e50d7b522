"""Tests for MetricsAnalyzer: counting, nesting, recursion, complexity and scoring."""

import pytest

from ast_builders import (
    block,
    call,
    do_while,
    expr,
    for_,
    func,
    if_,
    nested_loops,
    ret,
    while_,
)
from cppflow.ast_model import NodeKind, make_node
from cppflow.errors import EmptyInputError
from cppflow.metrics import (
    Severity,
    analyze_metrics,
    classify_complexity,
    count_source_lines,
    score_metrics,
)

SOURCE = "int f() {\n  return 0;\n}\n"


def test_single_loop_with_if():
    tree = func("f", for_(block(if_("i % 2 == 0", block(make_node(NodeKind.BINARY_OP, "x++;"))))))
    m = analyze_metrics(tree, SOURCE)

    assert m.loop_count == 1
    assert m.nested_loop_count == 0
    assert m.conditional_count == 1
    assert m.complexity == "linear"
    assert m.complexity_notation == "O(n)"
    assert m.recursion_count == 0
    assert m.score == 100
    assert m.insights == ()


def test_direct_recursion_inside_branch():
    tree = func("f", if_("n > 0", block(call("f", "f(n - 1);"))), ret())
    m = analyze_metrics(tree, SOURCE)

    assert m.recursion_count == 1
    assert m.recursive_functions == ("f",)
    assert m.complexity == "exponential(2)"
    assert m.score <= 95
    assert any(i.severity is Severity.INFO for i in m.insights)


def test_recursion_through_nested_call_expression():
    inner = call("fib", "fib(n - 1)")
    tree = func("fib", ret("return fib(n - 1) + 1;", make_node(NodeKind.BINARY_OP, "fib(n - 1) + 1", children=[inner])))
    assert analyze_metrics(tree, SOURCE).recursion_count == 1


def test_call_on_open_chain_counts_as_recursion():
    tree = func("outer", func("inner", call("outer")))
    m = analyze_metrics(tree, SOURCE)
    assert m.recursion_count == 1
    assert m.recursive_functions == ("outer",)
    assert m.function_count == 2


def test_call_to_closed_function_is_not_recursion():
    unit = block(func("g", ret()), func("f", call("g"), ret()))
    m = analyze_metrics(unit, SOURCE)
    assert m.recursion_count == 0
    assert m.complexity == "constant"


def test_qualified_method_name_matches_unqualified_call():
    tree = make_node(NodeKind.FUNCTION_DEF, "...", name="Tree::depth", body=block(call("depth")))
    assert analyze_metrics(tree, SOURCE).recursion_count == 1


def test_recursion_counts_distinct_names():
    tree = func("f", call("f"), call("f"), if_("x", call("f")))
    assert analyze_metrics(tree, SOURCE).recursion_count == 1


@pytest.mark.parametrize("k", [1, 2, 3, 4, 5])
def test_nesting_monotonicity(k):
    m = analyze_metrics(func("f", nested_loops(k, ret())), SOURCE)
    assert m.nested_loop_count == k - 1
    assert m.loop_count == k


def test_sibling_loops_do_not_nest():
    tree = func("f", for_(block(ret())), while_("x", block(ret())), do_while(block(ret()), "y"))
    m = analyze_metrics(tree, SOURCE)
    assert m.loop_count == 3
    assert m.nested_loop_count == 0


def test_loops_in_conditions_and_switch_counted():
    switch = make_node(NodeKind.SWITCH, "switch (x) { ... }", condition=expr("x"), body=block(for_(block(ret()))))
    m = analyze_metrics(func("f", switch), SOURCE)
    assert m.conditional_count == 1
    assert m.loop_count == 1


def test_two_nested_loops_are_quadratic():
    m = analyze_metrics(func("f", nested_loops(2, ret())), SOURCE)
    assert m.nested_loop_count == 1
    assert m.complexity == "quadratic"
    assert m.score == 100


@pytest.mark.parametrize(
    "loops, nested, recursion, expected",
    [
        (0, 0, 0, ("constant", "O(1)")),
        (0, 0, 2, ("exponential(2)", "O(2^n)")),
        (1, 0, 1, ("linear", "O(n)")),
        (2, 1, 0, ("quadratic", "O(n²)")),
        (3, 2, 0, ("cubic", "O(n^3)")),
        (5, 4, 1, ("polynomial(5)", "O(n^5)")),
    ],
)
def test_classify_complexity(loops, nested, recursion, expected):
    assert classify_complexity(loops, nested, recursion) == expected


def test_total_lines_ignores_blank_lines():
    assert count_source_lines("int a;\n\n   \n\tint b;\n") == 2


def test_deep_nesting_penalties_stack():
    score, insights = score_metrics(total_lines=10, function_count=1, loop_count=4, nested_loop_count=3, recursion_count=0)
    # 15 * (3 - 1) + 20
    assert score == 50
    assert [i.severity for i in insights] == [Severity.WARNING, Severity.WARNING]


def test_size_and_count_penalties():
    score, insights = score_metrics(total_lines=240, function_count=12, loop_count=6, nested_loop_count=0, recursion_count=0)
    # functions -5, lines -10, loops -5; average 20 lines per function
    assert score == 80
    assert [i.severity for i in insights] == [Severity.SUGGESTION, Severity.SUGGESTION, Severity.WARNING]


def test_large_average_function_penalty():
    score, insights = score_metrics(total_lines=120, function_count=2, loop_count=0, nested_loop_count=0, recursion_count=0)
    assert score == 90
    assert insights[-1].message.startswith("Functions are too large")


def test_score_clamped_at_zero():
    score, _ = score_metrics(total_lines=1000, function_count=11, loop_count=20, nested_loop_count=8, recursion_count=3)
    assert score == 0


@pytest.mark.parametrize("lines", [0, 10, 201, 5000])
@pytest.mark.parametrize("nested", [0, 1, 2, 3, 10])
@pytest.mark.parametrize("functions", [0, 1, 11])
def test_score_bounds(lines, nested, functions):
    score, _ = score_metrics(lines, functions, nested + 1, nested, 1)
    assert 0 <= score <= 100


def test_to_dict_uses_contract_names():
    d = analyze_metrics(func("f", ret()), SOURCE).to_dict()
    assert d == {
        "totalLines": 3,
        "functionCount": 1,
        "loopCount": 0,
        "nestedLoopCount": 0,
        "recursionCount": 0,
        "conditionalCount": 0,
        "complexity": "constant",
        "complexityNotation": "O(1)",
        "score": 100,
    }


def test_empty_source_raises():
    with pytest.raises(EmptyInputError):
        analyze_metrics(func("f", ret()), "")
    with pytest.raises(EmptyInputError):
        analyze_metrics(func("f", ret()), "  \n\t")


def test_none_root_raises():
    with pytest.raises(EmptyInputError):
        analyze_metrics(None, SOURCE)


@pytest.mark.parametrize("call_name", ["this->f", "f<T>", "this->f<int>"])
def test_member_and_template_calls_count_as_recursion(call_name):
    tree = func("f", if_("n > 0", block(call(call_name, f"{call_name}(n - 1);"))), ret())
    m = analyze_metrics(tree, SOURCE)
    assert m.recursion_count == 1
    assert m.recursive_functions == ("f",)


def test_total_lines_split_on_newline_only():
    assert count_source_lines("int a;\vint b;\fint c; int d;\n") == 1
