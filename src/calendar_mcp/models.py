"""Calendar event draft and its rendering to the Calendar API payload."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_REMINDERS: dict[str, Any] = {
    "useDefault": False,
    "overrides": [{"method": "popup", "minutes": 10}],
}


def default_reminders() -> dict[str, Any]:
    """One popup reminder ten minutes before the start."""
    return {
        "useDefault": DEFAULT_REMINDERS["useDefault"],
        "overrides": [dict(o) for o in DEFAULT_REMINDERS["overrides"]],
    }


@dataclass(frozen=True, slots=True)
class CalendarEventDraft:
    """An event ready to be submitted; built fresh for every call."""

    summary: str
    start_time: str
    end_time: str
    time_zone: str
    reminders: dict[str, Any] = field(default_factory=default_reminders)
    description: str | None = None
    location: str | None = None
    attendees: list[dict[str, str]] | None = None

    def to_payload(self) -> dict[str, Any]:
        """Render the ``events.insert`` request body."""
        payload: dict[str, Any] = {
            "summary": self.summary,
            "start": {"dateTime": self.start_time, "timeZone": self.time_zone},
            "end": {"dateTime": self.end_time, "timeZone": self.time_zone},
        }
        if self.description is not None:
            payload["description"] = self.description
        if self.location:
            payload["location"] = self.location
        if self.attendees is not None:
            payload["attendees"] = [dict(a) for a in self.attendees]
        payload["reminders"] = self.reminders
        return payload
