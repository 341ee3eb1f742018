"""Argument value types with their own schema kind and decode rules."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, ClassVar

from .exceptions import InvalidTypeError

_INTEGER = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class ID:
    """A GitLab identifier: either a numeric ID or a path such as ``group/project``.

    MCP clients always send it as a string. A string that parses as an integer
    selects the numeric branch, anything else is kept as a path.

    ``raw`` keeps the text as received, so an all-digit commit SHA such as
    ``0123456`` keeps its leading zero.
    """

    mcp_type: ClassVar[str] = "string"

    integer: int = 0
    string: str = ""
    raw: str = field(default="", compare=False)

    @classmethod
    def decode(cls, raw: Any) -> ID:
        if not isinstance(raw, str):
            raise InvalidTypeError(f"expected string for ID, got {type(raw).__name__}")
        if _INTEGER.fullmatch(raw):
            return cls(integer=int(raw), raw=raw)
        return cls(string=raw, raw=raw)

    def value(self) -> int | str:
        return self.integer if self.integer else self.string

    def is_zero(self) -> bool:
        return self.integer == 0 and self.string == ""

    def __str__(self) -> str:
        return str(self.value())


@dataclass(frozen=True)
class OptionalBool:
    """A boolean that remembers whether the caller supplied it at all.

    Update endpoints treat an absent flag as "leave unchanged", so ``False``
    and "not given" must stay distinguishable.
    """

    mcp_type: ClassVar[str] = "boolean"

    value: bool = False
    is_set: bool = False

    @classmethod
    def decode(cls, raw: Any) -> OptionalBool:
        if isinstance(raw, bool):
            return cls(value=raw, is_set=True)
        return cls()

    def ptr(self) -> bool | None:
        return self.value if self.is_set else None
