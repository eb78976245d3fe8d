"""
Record persistence: kinds, filters, repositories and the encrypting service.

Public API:
    RecordService(kind, repository, passphrase)  → find_all / find_by_id / create / update / delete
    Store(backend)                               → per-kind repositories
    resolve_filters(params, kind)                → FilterSpec
"""

from passvault.records.filters import FilterSpec, resolve_filters
from passvault.records.models import KINDS, RecordKind, get_kind
from passvault.records.service import RecordService, build_services
from passvault.records.store import Store

__all__ = [
    "KINDS",
    "FilterSpec",
    "RecordKind",
    "RecordService",
    "Store",
    "build_services",
    "get_kind",
    "resolve_filters",
]
