"""Omezení, kolikrát se reminder zobrazí člověku.

Dvě úrovně s různou životností:
- SessionMarkers: "už zobrazeno" v rámci jedné session, zaniká s ní.
- DailyCounterStore: počet zobrazení za kalendářní den, přežije restart klienta.
"""
import logging
from datetime import date
from typing import Callable, Protocol

from labtrack.client.local_state import load_json, write_json
from labtrack.config import settings

logger = logging.getLogger(__name__)


class SessionMarkers:
    def __init__(self):
        self._shown: set[str] = set()

    def has(self, reminder_id: str) -> bool:
        return reminder_id in self._shown

    def mark(self, reminder_id: str) -> None:
        self._shown.add(reminder_id)

    def clear(self) -> None:
        self._shown.clear()


class DailyCounterStore(Protocol):
    def get(self, reminder_id: str, day: date) -> int: ...

    def increment(self, reminder_id: str, day: date) -> int: ...


class MemoryCounterStore:
    def __init__(self):
        self._counts: dict[tuple[str, date], int] = {}

    def get(self, reminder_id: str, day: date) -> int:
        return self._counts.get((reminder_id, day), 0)

    def increment(self, reminder_id: str, day: date) -> int:
        count = self.get(reminder_id, day) + 1
        self._counts[(reminder_id, day)] = count
        return count


class FileCounterStore:
    """Počítadla v JSON souboru {den: {reminder_id: počet}}, starší dny se zahazují."""

    def __init__(self, path: str):
        self.path = path

    def _load(self) -> dict:
        return load_json(self.path, "Počítadla zobrazení")

    def get(self, reminder_id: str, day: date) -> int:
        return int(self._load().get(day.isoformat(), {}).get(reminder_id, 0))

    def increment(self, reminder_id: str, day: date) -> int:
        key = day.isoformat()
        counts = self._load().get(key, {})
        counts[reminder_id] = int(counts.get(reminder_id, 0)) + 1
        write_json(self.path, {key: counts})
        return counts[reminder_id]


class DisplayGate:
    def __init__(
        self,
        counters: DailyCounterStore,
        session: SessionMarkers | None = None,
        today: Callable[[], date] = date.today,
        daily_cap: int | None = None,
    ):
        self.counters = counters
        self.session = session if session is not None else SessionMarkers()
        self.today = today
        self.daily_cap = daily_cap if daily_cap is not None else settings.DISPLAY_DAILY_CAP

    def offer(self, reminder_id: str) -> bool:
        """True, pokud se má reminder teď zobrazit."""
        if self.session.has(reminder_id):
            return False
        day = self.today()
        if self.counters.get(reminder_id, day) >= self.daily_cap:
            # v této session už se nezkouší
            self.session.mark(reminder_id)
            logger.debug("Reminder %s dnes zobrazen %dx, přeskočeno", reminder_id, self.daily_cap)
            return False
        self.session.mark(reminder_id)
        self.counters.increment(reminder_id, day)
        return True

    def new_session(self) -> "DisplayGate":
        """Gate pro další session se stejnými denními počítadly."""
        return DisplayGate(self.counters, SessionMarkers(), self.today, self.daily_cap)
