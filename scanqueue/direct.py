"""Single-scan attendance flow used outside batch mode."""
import asyncio
from dataclasses import dataclass
from typing import Callable, Optional

from scanqueue import settings
from scanqueue.logging_conf import logger
from scanqueue.payload import DecodedPayload
from scanqueue.resolver import AttendanceResolver, Outcome, Resolution


@dataclass(frozen=True)
class Confirmation:
    """What the scanner shows after a member was resolved."""

    identifier: str
    name: Optional[str]
    chapter: Optional[str]
    outcome: Outcome


class DirectFlow:
    """
    Handles one scan at a time and holds a confirmation for a short while.

    While a scan is being resolved, or its confirmation is still shown,
    further scans are ignored.
    """

    def __init__(self, resolver: AttendanceResolver, confirmation_ms: Optional[int] = None,
                 notify: Optional[Callable[[str, str], None]] = None):
        self.resolver = resolver
        self.confirmation_ms = settings.CONFIRMATION_MS if confirmation_ms is None else confirmation_ms
        self.notify = notify
        self.in_flight = False
        self.confirmation: Optional[Confirmation] = None
        self._reset_task: Optional[asyncio.Task] = None
        self._generation = 0

    @property
    def busy(self) -> bool:
        return self.in_flight

    async def handle(self, payload: DecodedPayload) -> Optional[Resolution]:
        """Resolve one scan. Returns None if a previous scan is still in flight."""
        if self.in_flight:
            logger.debug(f"Direct scan ignored while busy: {payload.identifier}",
                         extra={"identifier": payload.identifier})
            return None

        self.in_flight = True
        generation = self._generation
        try:
            resolution = await self.resolver.resolve(payload.identifier)
        except Exception:
            if generation == self._generation:
                self.in_flight = False
            raise

        # Cancelled while resolving: the result no longer belongs on screen
        if generation != self._generation:
            logger.debug(f"Direct scan {payload.identifier} finished after cancel",
                         extra={"identifier": payload.identifier})
            return resolution

        if resolution.outcome in (Outcome.MARKED, Outcome.ALREADY_MARKED):
            self.confirmation = Confirmation(
                identifier=resolution.identifier,
                name=resolution.name,
                chapter=resolution.chapter,
                outcome=resolution.outcome,
            )
            if resolution.ok:
                self._notify("success", f"Attendance marked for {resolution.name}!")
            else:
                self._notify("info", f"{resolution.name} is already marked")
            self._reset_task = asyncio.get_running_loop().create_task(self._clear_after_delay())
        else:
            if resolution.outcome is Outcome.NOT_FOUND:
                self._notify("error", "Member not found!")
            else:
                self._notify("error", "Invalid QR code or processing error")
            self.in_flight = False

        return resolution

    async def _clear_after_delay(self) -> None:
        generation = self._generation
        try:
            await asyncio.sleep(self.confirmation_ms / 1000)
        finally:
            if generation == self._generation:
                self.reset()

    def reset(self) -> None:
        """Drop the confirmation and accept scans again."""
        self.confirmation = None
        self.in_flight = False

    def cancel(self) -> None:
        self._generation += 1
        if self._reset_task is not None and not self._reset_task.done():
            self._reset_task.cancel()
        self._reset_task = None
        self.reset()

    async def wait_ready(self) -> None:
        """Wait for a pending confirmation to clear."""
        if self._reset_task is not None and not self._reset_task.done():
            await asyncio.shield(self._reset_task)

    def _notify(self, level: str, message: str) -> None:
        log = logger.info if level != "error" else logger.warning
        log(message)
        if self.notify:
            self.notify(level, message)
