"""Join execution domain exports."""

from .join_contracts import DocumentHook, JoinOutcome, JoinRequest, JoinResult, JoinStatistics
from .join_orchestrator import JoinError, join_documents
from .join_files_use_case import execute_join_run

__all__ = [
    "DocumentHook",
    "JoinOutcome",
    "JoinRequest",
    "JoinResult",
    "JoinStatistics",
    "JoinError",
    "join_documents",
    "execute_join_run",
]
