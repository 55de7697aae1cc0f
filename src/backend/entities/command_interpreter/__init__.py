"""Command Interpreter package for classifying refinement utterances into intents."""

from .interpreter import classify, normalize_sort_column

__all__ = ["classify", "normalize_sort_column"]
