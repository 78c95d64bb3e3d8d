"""Presenters for CLI output formatting.

Presenters turn response models into rich tables and status lines.
"""

from .progress import StreamProgressPresenter
from .summary import ExportSummaryPresenter, PagePresenter

__all__ = ["ExportSummaryPresenter", "PagePresenter", "StreamProgressPresenter"]
