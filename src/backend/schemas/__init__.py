"""Schemas module initialization."""

from schemas.category import CategoryResponse
from schemas.identity import FingerprintResponse
from schemas.report import ReportCreate, ReportRecord, ReportResponse, ReportStatusUpdate
from schemas.take import TakeCreate, TakeCreateResponse, TakeListResponse, TakeResponse, TakeSortEnum
from schemas.vote import VoteCheckRequest, VoteCheckResponse, VoteCreate, VoteResponse, VoteStatus

__all__ = [
    "CategoryResponse",
    "FingerprintResponse",
    "ReportCreate",
    "ReportRecord",
    "ReportResponse",
    "ReportStatusUpdate",
    "TakeCreate",
    "TakeCreateResponse",
    "TakeListResponse",
    "TakeResponse",
    "TakeSortEnum",
    "VoteCheckRequest",
    "VoteCheckResponse",
    "VoteCreate",
    "VoteResponse",
    "VoteStatus",
]
