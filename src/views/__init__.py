"""View-state package: observable state plus intent methods per screen."""

from src.views.entry import ExpenseEntryView
from src.views.expense_list import ExpenseListView
from src.views.report import TEXT_PLAIN, ExportSink, ReportView
from src.views.settings import SettingsView

__all__ = [
    "ExpenseEntryView",
    "ExpenseListView",
    "ExportSink",
    "ReportView",
    "SettingsView",
    "TEXT_PLAIN",
]
