"""
Structural complexity metrics for a parsed translation unit.

The complexity class is a heuristic read off loop nesting and recursion;
it is not a proof of an asymptotic bound.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from cppflow.ast_model import CONDITIONAL_KINDS, LOOP_KINDS, AstNode, NodeKind
from cppflow.errors import EmptyInputError
from cppflow.logging_utils import get_logger

logger = get_logger(__name__)

BASE_SCORE = 100


class Severity(Enum):
    WARNING = "warning"  # risk
    INFO = "info"  # informational
    SUGGESTION = "suggestion"  # style


@dataclass(frozen=True)
class Insight:
    severity: Severity
    message: str

    def to_dict(self) -> dict:
        return {"severity": self.severity.value, "message": self.message}


@dataclass(frozen=True)
class Metrics:
    """Counts, complexity class and 0-100 score for one analyzed unit."""
    total_lines: int
    function_count: int
    loop_count: int
    nested_loop_count: int
    recursion_count: int
    conditional_count: int
    complexity: str
    complexity_notation: str
    score: int
    insights: Tuple[Insight, ...] = ()
    recursive_functions: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        """Serialize using the camelCase field names callers rely on."""
        return {
            "totalLines": self.total_lines,
            "functionCount": self.function_count,
            "loopCount": self.loop_count,
            "nestedLoopCount": self.nested_loop_count,
            "recursionCount": self.recursion_count,
            "conditionalCount": self.conditional_count,
            "complexity": self.complexity,
            "complexityNotation": self.complexity_notation,
            "score": self.score,
        }


@dataclass
class _WalkResult:
    function_count: int = 0
    loop_count: int = 0
    conditional_count: int = 0
    max_loop_depth: int = 0
    declared_functions: List[str] = field(default_factory=list)
    recursive_functions: List[str] = field(default_factory=list)


def count_source_lines(source_text: str) -> int:
    """Number of newline-separated lines holding at least one non-whitespace character."""
    return sum(1 for line in source_text.split("\n") if line.strip())


def _callee_name(call_name: str) -> str:
    """`this->f` -> `f`, `f<T>` -> `f`."""
    name = call_name.strip()
    if name.startswith("this->"):
        name = name[len("this->") :].strip()
    if name.endswith(">") and "<" in name:
        name = name[: name.index("<")].strip()
    return name


def _calls_open_function(call_name: str, open_functions: List[str]) -> Optional[str]:
    """Return the open function `call_name` refers to, if any."""
    call_name = _callee_name(call_name)
    for open_name in reversed(open_functions):
        if call_name == open_name or open_name.endswith("::" + call_name):
            return open_name
    return None


def _walk(root: AstNode) -> _WalkResult:
    """
    Single pass over the tree with an explicit work stack.

    Each node is pushed twice: once to enter (counting, opening loop and
    function scopes) and once to leave (closing them), so loop depth and
    the open-function chain follow the tree structure exactly.
    """
    result = _WalkResult()
    loop_depth = 0
    open_functions: List[str] = []
    declared: set[str] = set()
    recursive: set[str] = set()

    stack: List[Tuple[AstNode, bool]] = [(root, False)]
    while stack:
        node, leaving = stack.pop()
        kind = node.kind

        if leaving:
            if kind in LOOP_KINDS:
                loop_depth -= 1
            elif kind is NodeKind.FUNCTION_DEF and node.name:
                open_functions.pop()
            continue

        if kind is NodeKind.FUNCTION_DEF:
            result.function_count += 1
            if node.name:
                if node.name not in declared:
                    declared.add(node.name)
                    result.declared_functions.append(node.name)
                open_functions.append(node.name)
        elif kind in LOOP_KINDS:
            result.loop_count += 1
            loop_depth += 1
            result.max_loop_depth = max(result.max_loop_depth, loop_depth)
        elif kind in CONDITIONAL_KINDS:
            result.conditional_count += 1
        elif kind is NodeKind.CALL and node.name:
            target = _calls_open_function(node.name, open_functions)
            if target is not None and target not in recursive:
                recursive.add(target)
                result.recursive_functions.append(target)

        stack.append((node, True))
        stack.extend((child, False) for child in reversed(node.children))

    return result


def classify_complexity(loop_count: int, nested_loop_count: int, recursion_count: int) -> Tuple[str, str]:
    """
    Heuristic complexity class as (label, big-O notation).

    Nesting dominates loops, loops dominate recursion.
    """
    if nested_loop_count >= 2:
        degree = nested_loop_count + 1
        label = "cubic" if degree == 3 else f"polynomial({degree})"
        return label, f"O(n^{degree})"
    if nested_loop_count == 1:
        return "quadratic", "O(n²)"
    if loop_count > 0:
        return "linear", "O(n)"
    if recursion_count > 0:
        return "exponential(2)", "O(2^n)"
    return "constant", "O(1)"


def score_metrics(
    total_lines: int,
    function_count: int,
    loop_count: int,
    nested_loop_count: int,
    recursion_count: int,
) -> Tuple[int, List[Insight]]:
    """Apply the deduction table to BASE_SCORE; every deduction emits an insight."""
    score = BASE_SCORE
    insights: List[Insight] = []

    if nested_loop_count > 1:
        insights.append(Insight(
            Severity.WARNING,
            f"Found {nested_loop_count} levels of nested loops. "
            "Consider optimizing to reduce time complexity.",
        ))
        score -= 15 * (nested_loop_count - 1)

    if recursion_count > 0:
        insights.append(Insight(
            Severity.INFO,
            f"Detected {recursion_count} recursive function(s). "
            "Ensure proper base cases and stack usage.",
        ))
        score -= 5

    if function_count > 10:
        insights.append(Insight(
            Severity.SUGGESTION,
            "High number of functions. Consider consolidating related functionality.",
        ))
        score -= 5

    if total_lines > 200:
        insights.append(Insight(
            Severity.SUGGESTION,
            "Large code size. Consider breaking down into smaller modules.",
        ))
        score -= 10

    if loop_count > 5:
        insights.append(Insight(
            Severity.WARNING,
            "High number of loops. Review for potential optimizations.",
        ))
        score -= 5

    # Stacks with the nesting deduction above
    if nested_loop_count > 2:
        insights.append(Insight(
            Severity.WARNING,
            "Loops are nested more than three levels deep.",
        ))
        score -= 20

    avg_lines_per_function = total_lines / max(1, function_count)
    if avg_lines_per_function > 50:
        insights.append(Insight(
            Severity.WARNING,
            "Functions are too large on average. Consider breaking them down.",
        ))
        score -= 10

    return max(0, min(BASE_SCORE, score)), insights


class MetricsAnalyzer:
    """Derives Metrics from an AST and the source text it was parsed from."""

    def analyze(self, root: AstNode, source_text: str) -> Metrics:
        """
        Raises:
            EmptyInputError: root is None or source_text is blank
        """
        if root is None:
            raise EmptyInputError("No AST root supplied")
        if not source_text or not source_text.strip():
            raise EmptyInputError("No code provided")

        total_lines = count_source_lines(source_text)
        walk = _walk(root)

        nested_loop_count = max(0, walk.max_loop_depth - 1)
        recursion_count = len(walk.recursive_functions)
        complexity, notation = classify_complexity(walk.loop_count, nested_loop_count, recursion_count)
        score, insights = score_metrics(
            total_lines,
            walk.function_count,
            walk.loop_count,
            nested_loop_count,
            recursion_count,
        )

        logger.debug(
            f"Analyzed {total_lines} lines: {walk.function_count} functions "
            f"({', '.join(walk.declared_functions) or 'none'}), {walk.loop_count} loops, "
            f"complexity {notation}, score {score}"
        )

        return Metrics(
            total_lines=total_lines,
            function_count=walk.function_count,
            loop_count=walk.loop_count,
            nested_loop_count=nested_loop_count,
            recursion_count=recursion_count,
            conditional_count=walk.conditional_count,
            complexity=complexity,
            complexity_notation=notation,
            score=score,
            insights=tuple(insights),
            recursive_functions=tuple(walk.recursive_functions),
        )


def analyze_metrics(root: AstNode, source_text: str) -> Metrics:
    """Analyze with a fresh MetricsAnalyzer."""
    return MetricsAnalyzer().analyze(root, source_text)
