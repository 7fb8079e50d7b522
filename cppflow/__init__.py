"""Control-flow flowcharts and structural complexity metrics for C/C++ functions."""

from cppflow.ast_model import AstNode, NodeKind, ast_from_dict, ast_to_dict, make_node
from cppflow.errors import (
    AstTooDeepError,
    CppFlowError,
    EmptyInputError,
    MalformedNode,
    SourceSyntaxError,
)
from cppflow.graph_builder import (
    EdgeLabel,
    FlowEdge,
    FlowNode,
    FlowNodeKind,
    Flowchart,
    GraphBuilder,
    build_flowchart,
)
from cppflow.metrics import Insight, Metrics, MetricsAnalyzer, Severity, analyze_metrics

__all__ = [
    "AstNode",
    "AstTooDeepError",
    "CppFlowError",
    "EdgeLabel",
    "EmptyInputError",
    "FlowEdge",
    "FlowNode",
    "FlowNodeKind",
    "Flowchart",
    "GraphBuilder",
    "Insight",
    "MalformedNode",
    "Metrics",
    "MetricsAnalyzer",
    "NodeKind",
    "Severity",
    "SourceSyntaxError",
    "analyze_metrics",
    "ast_from_dict",
    "ast_to_dict",
    "build_flowchart",
    "make_node",
]
