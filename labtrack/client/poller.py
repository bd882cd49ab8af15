"""Klientský poller reminderů.

Jednou za interval zavolá kontrolu splatných reminderů na serveru a nově
vzniklé notifikace předá přes DisplayGate k zobrazení. Jedna instance na
jednu session; stop() zruší všechny naplánované úlohy.
"""
import asyncio
import logging
import time
from typing import Callable, Protocol

import httpx

from labtrack.client.display_gate import DisplayGate
from labtrack.client.local_state import CheckStamp, MemoryCheckStamp
from labtrack.config import settings

logger = logging.getLogger(__name__)


class ReminderSource(Protocol):
    async def check(self) -> int: ...

    async def fetch_overdue(self) -> list[dict]: ...


class ApiReminderSource:
    """Volá LabTrack API se session cookie přihlášeného uživatele."""

    def __init__(self, base_url: str | None = None, client: httpx.AsyncClient | None = None):
        self._client = client or httpx.AsyncClient(base_url=base_url or settings.BASE_URL, timeout=10.0)

    async def check(self) -> int:
        response = await self._client.post(
            "/api/reminders/check",
            headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
        )
        response.raise_for_status()
        return response.json()["created"]

    async def fetch_overdue(self) -> list[dict]:
        response = await self._client.get("/api/notifications", params={"overdue_only": "true"})
        response.raise_for_status()
        return response.json()["items"]

    async def aclose(self) -> None:
        await self._client.aclose()


def log_toast(notification: dict) -> None:
    logger.info("🔔 %s: %s", notification.get("title"), notification.get("message"))


class ReminderPoller:
    def __init__(
        self,
        source: ReminderSource,
        gate: DisplayGate,
        render: Callable[[dict], None] = log_toast,
        clock: Callable[[], float] = time.time,
        initial_delay: float | None = None,
        interval: float | None = None,
        min_spacing: float | None = None,
        visibility_min_spacing: float | None = None,
        max_per_fetch: int | None = None,
        stamp: CheckStamp | None = None,
    ):
        self.source = source
        self.gate = gate
        self.render = render
        self.clock = clock
        self.initial_delay = settings.POLL_INITIAL_DELAY if initial_delay is None else initial_delay
        self.interval = settings.POLL_INTERVAL if interval is None else interval
        self.min_spacing = settings.POLL_MIN_SPACING if min_spacing is None else min_spacing
        self.visibility_min_spacing = (
            settings.POLL_VISIBILITY_MIN_SPACING if visibility_min_spacing is None else visibility_min_spacing
        )
        self.max_per_fetch = settings.DISPLAY_MAX_PER_FETCH if max_per_fetch is None else max_per_fetch
        self.stamp = stamp if stamp is not None else MemoryCheckStamp()
        # odstup se počítá i od kontroly z minulého spuštění klienta
        self.last_check: float | None = self.stamp.load()
        self.checks = 0
        self._loop_task: asyncio.Task | None = None
        self._side_tasks: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def start(self) -> None:
        """Spustí smyčku, volat uvnitř běžící event loop."""
        if self.running:
            logger.debug("Poller už běží")
            return
        self._loop_task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        tasks = list(self._side_tasks)
        if self._loop_task is not None:
            tasks.append(self._loop_task)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._loop_task = None
        self._side_tasks.clear()

    async def _run(self) -> None:
        await asyncio.sleep(self.initial_delay)
        await self.trigger_check(force=True)
        while True:
            await asyncio.sleep(self.interval)
            await self.trigger_check()

    async def trigger_check(self, force: bool = False) -> bool:
        """Jedna kontrola. Bez force respektuje minimální odstup od minulé."""
        now = self.clock()
        if not force and self.last_check is not None and now - self.last_check < self.min_spacing:
            logger.debug("Kontrola reminderů přeskočena (rate limit)")
            return False
        self.last_check = now
        self.checks += 1
        try:
            created = await self.source.check()
            if created:
                logger.info("Vytvořeno %d nových notifikací", created)
            await self.show_overdue()
            self.stamp.save(now)
        except Exception as exc:
            logger.warning("Kontrola reminderů selhala, zkusí se znovu: %s", exc)
        return True

    async def show_overdue(self) -> int:
        notifications = await self.source.fetch_overdue()
        shown = 0
        for notification in notifications[: self.max_per_fetch]:
            key = str(notification.get("reminder_id") or notification["id"])
            if self.gate.offer(key):
                self.render(notification)
                shown += 1
        return shown

    def on_visibility_change(self, visible: bool) -> None:
        """Návrat do popředí spustí kontrolu mimo plán, nejdřív po visibility_min_spacing."""
        if not visible or not self.running:
            return
        now = self.clock()
        if self.last_check is not None and now - self.last_check < self.visibility_min_spacing:
            return
        task = asyncio.create_task(self.trigger_check(force=True))
        self._side_tasks.add(task)
        task.add_done_callback(self._side_tasks.discard)
