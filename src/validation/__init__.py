"""Validation package."""

from src.validation.validator import ExpenseValidator, parse_amount

__all__ = ["ExpenseValidator", "parse_amount"]
