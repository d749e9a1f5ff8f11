"""Database models module."""

from models.category import Category
from models.report import Report, ReportReason, ReportStatus
from models.take import Take
from models.vote import Vote, VoteType

__all__ = [
    "Category",
    "Report",
    "ReportReason",
    "ReportStatus",
    "Take",
    "Vote",
    "VoteType",
]
