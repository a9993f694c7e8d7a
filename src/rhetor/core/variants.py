"""Three-state handle used where a value may be pending, missing or held."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Unresolved:
    pass


@dataclass(frozen=True)
class Absent:
    pass


@dataclass(frozen=True)
class Present(Generic[T]):
    value: T


UNRESOLVED = Unresolved()
ABSENT = Absent()

Handle = Union[Unresolved, Absent, Present[T]]


def is_present(handle: Handle[T]) -> bool:
    return isinstance(handle, Present)
