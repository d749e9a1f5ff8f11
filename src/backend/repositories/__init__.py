"""Repository modules for database access."""

from repositories.category_repository import CategoryRepository
from repositories.report_repository import ReportRepository
from repositories.take_repository import TakeRepository, TakeSort
from repositories.vote_repository import VoteRepository

__all__ = [
    "CategoryRepository",
    "ReportRepository",
    "TakeRepository",
    "TakeSort",
    "VoteRepository",
]
