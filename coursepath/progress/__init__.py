"""
Progress Module - Completion tracking, sequential locks and course completion.

Components:
- tracker: ProgressTracker (mark_complete, track_access)
- locks: LockEvaluator and compute_lock_states
- completion: CompletionEvaluator
"""

from coursepath.progress.tracker import ProgressRecord, ProgressTracker
from coursepath.progress.completion import CompletionEvaluator, CompletionResult, Progress
from coursepath.progress.locks import (
    CourseOutline,
    ItemState,
    LockEvaluator,
    compute_lock_states,
    is_satisfied,
)

__all__ = [
    # Tracking
    "ProgressRecord",
    "ProgressTracker",
    # Completion
    "CompletionEvaluator",
    "CompletionResult",
    "Progress",
    # Locks
    "CourseOutline",
    "ItemState",
    "LockEvaluator",
    "compute_lock_states",
    "is_satisfied",
]
