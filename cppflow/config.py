"""Configuration settings for cppflow."""
from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """cppflow configuration settings."""

    # Mermaid rendering
    max_label_chars: int = int(os.getenv("CPPFLOW_MAX_LABEL_CHARS", "60"))
    mermaid_direction: str = os.getenv("CPPFLOW_MERMAID_DIRECTION", "TD")

    # Guard against adversarially deep trees (interpreter recursion limit)
    max_ast_depth: int = int(os.getenv("CPPFLOW_MAX_AST_DEPTH", "200"))


SETTINGS = Settings()
