"""Query Validator package for the read-only SQL guard."""

from .validator import FORBIDDEN_KEYWORDS, validate_select

__all__ = ["FORBIDDEN_KEYWORDS", "validate_select"]
