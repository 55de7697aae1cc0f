"""Refinement package: applies user commands to the current SQL for one turn."""

from .refiner import RefinementOutcome, apply_intent, quote_identifier, refine

__all__ = ["RefinementOutcome", "apply_intent", "quote_identifier", "refine"]
