"""In-memory record of the last delivered occurrence per reminder.

Not persisted: a restart inside an occurrence window may deliver again.
"""


class DeliveryGuard:
    def __init__(self) -> None:
        self._last: dict[str, str] = {}

    def should_deliver(self, reminder_id: str, occurrence_key: str) -> bool:
        return self._last.get(reminder_id) != occurrence_key

    def record_delivered(self, reminder_id: str, occurrence_key: str) -> None:
        self._last[reminder_id] = occurrence_key

    def forget(self, reminder_id: str) -> None:
        self._last.pop(reminder_id, None)

    def clear(self) -> None:
        self._last.clear()

    def last_delivered(self, reminder_id: str) -> str | None:
        return self._last.get(reminder_id)
