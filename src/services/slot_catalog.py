"""Static calendar of bookable slots"""

from datetime import date, datetime
from typing import Iterable, List, Optional

from database.models import Slot


class SlotCatalog:
    """
    Read-only provider of bookable (date, time) pairs.

    Availability comes from the calendar alone; confirmed appointments are
    not subtracted, booking is the point where conflicts are detected.
    """

    def __init__(self, slots: Iterable[Slot]):
        self._slots = sorted(slots, key=lambda s: (s.slot_date, s.slot_time))

    @classmethod
    def from_calendar(cls, dates: Iterable[str], times: Iterable[str]) -> "SlotCatalog":
        times = list(times)
        slots = [
            Slot(
                slot_date=datetime.strptime(day, "%Y-%m-%d").date(),
                slot_time=datetime.strptime(hour, "%H:%M").time(),
            )
            for day in dates
            for hour in times
        ]
        return cls(slots)

    @classmethod
    def from_config(cls, cfg) -> "SlotCatalog":
        return cls.from_calendar(cfg.slot_dates, cfg.available_times)

    def available_slots(self, slot_date: Optional[date] = None) -> List[Slot]:
        return [
            slot
            for slot in self._slots
            if slot.available and (slot_date is None or slot.slot_date == slot_date)
        ]
