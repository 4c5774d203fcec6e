"""The ``create_event`` tool: argument contract, event builder and handler."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from mcp import types
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
    model_validator,
)

from calendar_mcp.calendar_client import RemoteCallError
from calendar_mcp.models import CalendarEventDraft, default_reminders
from calendar_mcp.registry import ArgumentError, ToolDescriptor
from calendar_mcp.tools._helpers import (
    error_result,
    text_result,
    validate_datetime_order,
    validate_emails,
)

if TYPE_CHECKING:
    from calendar_mcp.app import AppContext

logger = logging.getLogger(__name__)

CREATE_EVENT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "summary": {"type": "string", "description": "Event title"},
        "start_time": {"type": "string", "description": "Start time (ISO format)"},
        "end_time": {"type": "string", "description": "End time (ISO format)"},
        "description": {"type": "string", "description": "Event description"},
        "location": {"type": "string", "description": "Event location"},
        "attendees": {
            "type": "array",
            "items": {"type": "string"},
            "description": "List of attendee emails",
        },
        "reminders": {
            "type": "object",
            "properties": {
                "useDefault": {
                    "type": "boolean",
                    "description": "Whether to use default reminders",
                },
                "overrides": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "method": {
                                "type": "string",
                                "description": "Reminder method (e.g., popup, email)",
                            },
                            "minutes": {
                                "type": "number",
                                "description": "Minutes before event start for the reminder",
                            },
                        },
                        "required": ["method", "minutes"],
                    },
                    "description": "List of custom reminder settings",
                },
            },
            "description": "Reminder settings for the event",
        },
    },
    "required": ["summary", "start_time", "end_time"],
}

_REQUIRED_FIELDS = ("summary", "start_time", "end_time")


class ReminderOverride(BaseModel):
    model_config = ConfigDict(extra="allow")

    method: StrictStr
    minutes: StrictInt | StrictFloat


class ReminderSettings(BaseModel):
    model_config = ConfigDict(extra="allow")

    useDefault: StrictBool | None = None  # noqa: N815
    overrides: list[ReminderOverride] | None = None


class CreateEventArguments(BaseModel):
    """Validated arguments of ``create_event``."""

    summary: StrictStr = Field(min_length=1)
    start_time: StrictStr = Field(min_length=1)
    end_time: StrictStr = Field(min_length=1)
    description: StrictStr | None = None
    location: StrictStr | None = None
    attendees: list[StrictStr] | None = None
    reminders: ReminderSettings | None = None

    @field_validator("attendees")
    @classmethod
    def check_attendees(cls, value: list[str] | None) -> list[str] | None:
        if value and (err := validate_emails(value)):
            raise ValueError(err)
        return value

    @model_validator(mode="after")
    def check_time_range(self) -> CreateEventArguments:
        if err := validate_datetime_order(self.start_time, self.end_time):
            raise ValueError(err)
        return self


def build_event(
    args: CreateEventArguments | Mapping[str, Any],
    time_zone: str,
) -> CalendarEventDraft:
    """Turn tool arguments into an event draft.

    Timestamps are passed through unchanged and tagged with *time_zone*.
    Without a ``reminders`` argument the draft gets one popup reminder ten
    minutes before the start.

    Raises:
        ArgumentError: If ``summary``, ``start_time`` or ``end_time`` is
            missing or empty.
    """
    if isinstance(args, BaseModel):
        data = args.model_dump(exclude_unset=True)
    else:
        data = dict(args)

    missing = [name for name in _REQUIRED_FIELDS if not data.get(name)]
    if missing:
        raise ArgumentError(f"Missing required argument(s): {', '.join(missing)}")

    attendees = data.get("attendees")
    reminders = data.get("reminders")

    return CalendarEventDraft(
        summary=data["summary"],
        description=data.get("description"),
        start_time=data["start_time"],
        end_time=data["end_time"],
        time_zone=time_zone,
        location=data.get("location") or None,
        attendees=[{"email": email} for email in attendees] if attendees is not None else None,
        reminders=reminders if reminders is not None else default_reminders(),
    )


async def create_event(args: CreateEventArguments, app: AppContext) -> types.CallToolResult:
    """Create the event on the primary calendar and report its link."""
    draft = build_event(args, app.settings.time_zone)
    logger.debug("Event object created: %s", json.dumps(draft.to_payload(), indent=2))

    try:
        created = await app.calendar.insert_event(draft)
    except RemoteCallError as exc:
        logger.error(
            "Failed to create event: %s (status=%s, reason=%s)",
            exc.message,
            exc.status_code,
            exc.reason,
        )
        return error_result(f"Error: Failed to create event: {exc}")

    logger.info("Event created: %s (id=%s)", created.link, created.id)
    return text_result(f"Event created: {created.link}")


CREATE_EVENT_TOOL = ToolDescriptor(
    name="create_event",
    description="Create a calendar event with specified details",
    input_schema=CREATE_EVENT_SCHEMA,
    arguments_model=CreateEventArguments,
    handler=create_event,
)
