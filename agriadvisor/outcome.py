"""
Outcome of a call to an unreliable provider.

``live`` is True only when the value came from the real provider; False
means the adapter substituted its fallback constant.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: T
    live: bool

    @classmethod
    def provider(cls, value: T) -> "Outcome[T]":
        return cls(value=value, live=True)

    @classmethod
    def fallback(cls, value: T) -> "Outcome[T]":
        return cls(value=value, live=False)
