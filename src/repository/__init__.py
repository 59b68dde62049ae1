"""Repository package."""

from src.repository.expense_repository import ExpenseRepository

__all__ = ["ExpenseRepository"]
