"""Per-member calendar events at ``/family/<member>/calendar/events.json``."""

from __future__ import annotations

from familyhub.collection import CollectionService
from familyhub.errors import BadRequest
from familyhub.paths import CALENDAR_TEMPLATE


class CalendarEventService(CollectionService):
    path_template = CALENDAR_TEMPLATE
    record_name = "Event"

    def normalize(self, record: dict) -> dict:
        if not record.get("title"):
            raise BadRequest("Event title is required")
        return record
