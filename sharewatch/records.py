"""Signal record value type shared by sources, the merge engine and the store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class SignalValidationError(ValueError):
    pass


@dataclass(frozen=True)
class SignalRecord:
    """One observed engagement event (a tweet linking to an article).

    Identity is the ``id`` alone; ``weight`` and the payload fields are
    ignored by equality and hashing.
    """

    id: str
    weight: int = field(default=0, compare=False)
    author: Optional[str] = field(default=None, compare=False)
    text: Optional[str] = field(default=None, compare=False)
    created_at: Optional[str] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id:
            raise SignalValidationError(f"record id must be a non-empty string, got {self.id!r}")
        if isinstance(self.weight, bool) or not isinstance(self.weight, int):
            raise SignalValidationError(f"record {self.id} weight must be an int, got {self.weight!r}")
        if self.weight < 0:
            raise SignalValidationError(f"record {self.id} has negative weight {self.weight}")

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"id": self.id, "weight": self.weight}
        for name in ("author", "text", "created_at"):
            value = getattr(self, name)
            if value is not None:
                payload[name] = value
        return payload

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "SignalRecord":
        return cls(
            id=str(payload["id"]),
            weight=payload.get("weight", 0),
            author=payload.get("author"),
            text=payload.get("text"),
            created_at=payload.get("created_at"),
        )
