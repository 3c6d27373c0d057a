from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from datetime import UTC, datetime

"""One line of the JSON Lines error log (one per failed command)."""

__all__ = [
    "ERROR_RECORD_KEYS",
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    timestamp: str  # ISO8601 UTC, 'Z' suffix
    command: str  # import | export | stats
    target: str  # source file or collection
    error_type: str  # UPPER_SNAKE, see services.commands
    message: str

    @classmethod
    def create(cls, command: str, target: str, error_type: str, message: str) -> ErrorRecord:
        now = datetime.now(UTC).isoformat(timespec="seconds")
        return cls(now.replace("+00:00", "Z"), command, target, error_type, message)

    def to_json_line(self) -> str:
        # キーは dataclass のフィールドのみ
        return json.dumps(asdict(self), ensure_ascii=False)


ERROR_RECORD_KEYS = tuple(f.name for f in fields(ErrorRecord))
