"""Transfer, tree walking, diff and sync engines."""

from .comparator import DiffEntry, DiffType, FileComparator
from .diff import DiffEngine, DiffReport
from .engine import SyncEngine
from .operations import ProgressReader, TransferEngine, TransferResult
from .scanner import TreeWalker, WalkEntry

__all__ = [
    "DiffEngine",
    "DiffEntry",
    "DiffReport",
    "DiffType",
    "FileComparator",
    "ProgressReader",
    "SyncEngine",
    "TransferEngine",
    "TransferResult",
    "TreeWalker",
    "WalkEntry",
]
