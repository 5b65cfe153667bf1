"""
accountant.py
Payload byte accounting for the volume being built.
Only regular file data counts; tar headers and padding do not, so the limit
bounds contained data rather than the final volume size.
"""

from __future__ import annotations


class SizeAccountant:
    def __init__(self, limit: int):
        self.limit = limit
        self.total = 0

    def add(self, n: int) -> int:
        self.total += n
        return self.total

    def would_overflow(self, n: int) -> bool:
        # An empty volume always accepts the next file, however large.
        return self.total > 0 and self.total + n > self.limit

    def reset(self) -> None:
        self.total = 0
