"""
Tagged result type shared by every service entry point.

Ok carries the payload fields, Err carries a user-facing message. Both render
to the universal envelope: {"success": True, ...fields} or
{"success": False, "error": message}.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Ok:
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return True

    def envelope(self) -> dict[str, Any]:
        return {"success": True, **self.data}


@dataclass(frozen=True)
class Err:
    error: str

    @property
    def success(self) -> bool:
        return False

    def envelope(self) -> dict[str, Any]:
        return {"success": False, "error": self.error}


Result = Ok | Err
