"""
Explicit partial-update payload.

Only fields that were actually supplied are carried; a supplied ``None``
means "clear this column", which is different from "leave it alone".
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass(frozen=True)
class PartialUpdate:
    values: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def of(cls, **fields: Any) -> "PartialUpdate":
        """Build an update from keyword args, dropping the ones left as UNSET."""
        return cls({name: value for name, value in fields.items() if value is not UNSET})

    def is_set(self, name: str) -> bool:
        return name in self.values

    def is_empty(self) -> bool:
        return not self.values

    def as_dict(self) -> Dict[str, Any]:
        return dict(self.values)
