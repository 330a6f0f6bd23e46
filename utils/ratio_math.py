"""Integer ratio helpers for token accounting"""

from typing import Optional


def safe_div(numerator: int, denominator: int) -> int:
    """Truncating integer division where a zero denominator yields 0"""
    if denominator == 0:
        return 0
    return numerator // denominator


def ratio_or_previous(numerator: int, denominator: int, previous: Optional[int]) -> Optional[int]:
    """Truncating division that keeps the previous value when the denominator is 0"""
    if denominator == 0:
        return previous
    return numerator // denominator
