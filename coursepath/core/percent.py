"""
Percentages shared by quiz scores and course progress.
"""


def percent_score(earned: int, possible: int) -> int:
    """
    earned / possible as a 0-100 integer, halves rounded up.

    Integer arithmetic only, so an exact .5 always rounds up.
    """
    if possible <= 0:
        return 0
    return (earned * 200 + possible) // (2 * possible)
