"""Undo/redo history over immutable snapshots.

Values are treated as snapshots: an update that hands back the very same
object as the present value is a no-op and does not create a history step.
"""
from __future__ import annotations

from typing import Callable, Generic, TypeVar, Union

T = TypeVar("T")

DEFAULT_LIMIT = 50


class History(Generic[T]):
    def __init__(self, initial: T, limit: int = DEFAULT_LIMIT):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit
        self.past: list[T] = []
        self.present: T = initial
        self.future: list[T] = []

    @property
    def can_undo(self) -> bool:
        return bool(self.past)

    @property
    def can_redo(self) -> bool:
        return bool(self.future)

    def set(self, updater: Union[T, Callable[[T], T]]) -> bool:
        """Apply a new value (or a function of the present); True if a step was recorded."""
        nxt = updater(self.present) if callable(updater) else updater
        if nxt is self.present:
            return False
        if len(self.past) >= self.limit:
            self.past = self.past[1:]
        self.past.append(self.present)
        self.present = nxt
        self.future = []
        return True

    def undo(self) -> bool:
        if not self.past:
            return False
        self.future.insert(0, self.present)
        self.present = self.past.pop()
        return True

    def redo(self) -> bool:
        if not self.future:
            return False
        self.past.append(self.present)
        self.present = self.future.pop(0)
        return True

    def reset(self, value: T) -> None:
        self.past = []
        self.present = value
        self.future = []
