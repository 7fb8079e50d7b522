"""Error types shared by the parser, graph builder and metrics analyzer."""
from __future__ import annotations

from dataclasses import dataclass


class CppFlowError(Exception):
    """Base class for every error raised by cppflow."""


class EmptyInputError(CppFlowError):
    """No source text or no AST root was supplied."""


class SourceSyntaxError(CppFlowError):
    """The parser could not produce a well-formed tree."""

    def __init__(self, message: str, line: int = 0, column: int = 0):
        super().__init__(message)
        self.line = line
        self.column = column

    def __str__(self) -> str:
        base = super().__str__()
        if self.line:
            return f"{base} (line {self.line}, column {self.column})"
        return base


class AstTooDeepError(CppFlowError):
    """The tree nests deeper than Settings.max_ast_depth."""

    def __init__(self, depth: int, limit: int):
        super().__init__(f"AST depth {depth} exceeds the configured limit of {limit}")
        self.depth = depth
        self.limit = limit


@dataclass(frozen=True)
class MalformedNode:
    """
    A node that violates the expected shape (e.g. an If with no condition).

    Recorded on the result instead of aborting the build; a placeholder is
    used in its place.
    """

    node_kind: str
    text: str
    message: str
    line: int = 0
    kind: str = "MalformedNode"

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "nodeKind": self.node_kind,
            "text": self.text,
            "message": self.message,
            "line": self.line,
        }
