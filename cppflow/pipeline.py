"""
Request-level entry points: raw source in, plain response records out.

This is the layer an HTTP handler calls. Parsing, graph building and
analysis failures come back as error records; nothing is raised.
"""
from __future__ import annotations

from typing import Any

from cppflow.errors import CppFlowError, EmptyInputError, SourceSyntaxError
from cppflow.graph_builder import GraphBuilder
from cppflow.logging_utils import get_logger
from cppflow.mermaid import flowchart_to_mermaid
from cppflow.metrics import MetricsAnalyzer
from cppflow.parser import CppParser

logger = get_logger(__name__)


def _error_details(exc: CppFlowError) -> dict[str, Any]:
    details: dict[str, Any] = {"type": type(exc).__name__, "details": str(exc)}
    if isinstance(exc, SourceSyntaxError):
        details["line"] = exc.line
        details["column"] = exc.column
    return details


def generate_flowchart(code: str | None) -> dict[str, Any]:
    """
    Parse `code` and build its flowchart.

    Returns:
        {"error": False, "flowchart": {...}, "mermaid": str, "message": str}
        or {"error": True, "message": str, "type": str, "details": str}
    """
    if not code:
        return {"error": True, "message": "No code provided", "type": EmptyInputError.__name__}

    try:
        root = CppParser().parse(code)
        flowchart = GraphBuilder().build(root)
    except CppFlowError as e:
        logger.error(f"Flowchart generation error: {e}")
        return {"error": True, "message": "Failed to generate flowchart", **_error_details(e)}

    logger.debug(f"Generated flowchart with {len(flowchart.nodes)} nodes and {len(flowchart.edges)} edges")
    return {
        "error": False,
        "flowchart": flowchart.to_dict(),
        "mermaid": flowchart_to_mermaid(flowchart),
        "message": "Flowchart generated successfully",
    }


def analyze_performance(code: str | None) -> dict[str, Any]:
    """
    Parse `code` and compute its metrics.

    Returns:
        {"success": True, "data": {"summary", "insights", "score", "complexity"}}
        or {"success": False, "message": str, "type": str, "details": str}
    """
    if not code:
        return {"success": False, "message": "No code provided", "type": EmptyInputError.__name__}

    try:
        root = CppParser().parse(code)
        metrics = MetricsAnalyzer().analyze(root, code)
    except CppFlowError as e:
        logger.error(f"Performance analysis error: {e}")
        return {"success": False, "message": "Error analyzing code performance", **_error_details(e)}

    return {
        "success": True,
        "data": {
            "summary": metrics.to_dict(),
            "insights": [i.to_dict() for i in metrics.insights],
            "score": metrics.score,
            "complexity": metrics.complexity,
        },
    }
