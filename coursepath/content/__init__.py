"""
Content Module - Instructor-side course structure edits.
"""

from coursepath.content.ordering import Direction, reorder_item

__all__ = ["Direction", "reorder_item"]
