"""Operations (classify, walk)"""
from .classifier import Change, classify, reconcile_entry
from .walker import WalkStats, walk

__all__ = [
    "Change", "classify", "reconcile_entry",
    "WalkStats", "walk",
]
