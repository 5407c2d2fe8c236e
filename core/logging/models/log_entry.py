"""
log_entry.py

Dataclass for one audit trail entry.

• from_dict()  – builds the object from a DB row / JSON dict
• as_dict()    – plain dict for export (timestamp as ISO-UTC, data decoded)
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class LogEntry:
    id: Optional[int]
    timestamp: datetime          # always UTC
    log_level: str
    user_id: Optional[str]
    username: Optional[str]
    feature: str
    event: str
    reference_id: Optional[str]
    message: Optional[str]
    data: Dict[str, Any] = field(default_factory=dict)

    # -------------------- Factory ------------------------------------ #
    @classmethod
    def from_dict(cls, data: dict) -> "LogEntry":
        """Build a LogEntry from a DB/JSON dict."""
        ts = data["timestamp"]
        if isinstance(ts, str):
            ts = datetime.fromisoformat(ts)
        payload = data.get("data") or {}
        if isinstance(payload, str):
            payload = json.loads(payload) if payload else {}
        return cls(
            id=data.get("id"),
            timestamp=ts,
            log_level=data.get("log_level", "INFO"),
            user_id=data.get("user_id"),
            username=data.get("username"),
            feature=data.get("feature", ""),
            event=data.get("event", ""),
            reference_id=data.get("reference_id"),
            message=data.get("message"),
            data=payload,
        )

    # -------------------- Dict for export ---------------------------- #
    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp_utc": self.timestamp.replace(microsecond=0).isoformat(),
            "log_level": self.log_level,
            "user_id": self.user_id,
            "username": self.username,
            "feature": self.feature,
            "event": self.event,
            "reference_id": self.reference_id,
            "message": self.message,
            "data": dict(self.data),
        }
