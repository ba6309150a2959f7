"""
coursepath - learner progression core for course platforms.

Tracks content completion, runs scored quiz attempts under a retake policy,
computes sequential locks and course completion, and issues certificates.
"""

__version__ = "0.1.0"
