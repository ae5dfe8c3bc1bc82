"""
Reservation Expiration Sweeper

Finds pending reservations past their expiry and returns their units to
the available pool. One failing reservation never aborts the batch: the
failure is recorded in the summary and the sweep moves on.

ReservationSweepScheduler runs the sweep on a fixed interval in a single
background task, skips a tick while the previous one is still running and
bounds each tick with a timeout.
"""

import asyncio
import logging
import time
from datetime import timedelta
from typing import Optional

from .inventory_service import InventoryService
from .models import FailedReservation, SweepSummary, utc_now
from .protocols import ReservationRepositoryProtocol

logger = logging.getLogger(__name__)

DEFAULT_BATCH_LIMIT = 1000
DEFAULT_SWEEP_INTERVAL = timedelta(minutes=10)
DEFAULT_TICK_TIMEOUT = timedelta(minutes=2)


class ReservationExpirationSweeper:
    """Stateless batch job; every call to run_once is one sweep"""

    def __init__(
        self,
        inventory_service: InventoryService,
        reservation_repository: ReservationRepositoryProtocol,
        batch_limit: int = DEFAULT_BATCH_LIMIT,
    ):
        self.inventory_service = inventory_service
        self.reservation_repository = reservation_repository
        self.batch_limit = batch_limit

    async def run_once(self) -> SweepSummary:
        """
        Expire one batch of reservations.

        Only a failure to list expired reservations raises. Per-reservation
        errors (missing item, lock conflict, store error) land in
        ``failed_reservations``.
        """
        started_at = utc_now()
        started = time.monotonic()

        expired = await self.reservation_repository.find_expired(self.batch_limit)
        summary = SweepSummary(total_found=len(expired), started_at=started_at)

        if not expired:
            summary.execution_duration_ms = (time.monotonic() - started) * 1000
            logger.debug("Expiration sweep found no expired reservations")
            return summary

        for reservation in expired:
            try:
                await self.inventory_service.expire_reservation(reservation.id)
            except Exception as e:
                logger.warning(f"Failed to expire reservation {reservation.id} (order {reservation.order_id}): {e}")
                summary.failed_reservations.append(
                    FailedReservation(reservation_id=reservation.id, reason=str(e))
                )
                continue
            summary.released_reservation_ids.append(reservation.id)

        summary.total_released = len(summary.released_reservation_ids)
        summary.total_failed = len(summary.failed_reservations)
        summary.execution_duration_ms = (time.monotonic() - started) * 1000

        logger.info(
            f"Expiration sweep: found={summary.total_found} released={summary.total_released} "
            f"failed={summary.total_failed} duration={summary.execution_duration_ms:.1f}ms"
        )
        return summary


class ReservationSweepScheduler:
    """Fixed-interval runner for the expiration sweeper"""

    def __init__(
        self,
        sweeper: ReservationExpirationSweeper,
        interval: timedelta = DEFAULT_SWEEP_INTERVAL,
        tick_timeout: timedelta = DEFAULT_TICK_TIMEOUT,
    ):
        if interval <= timedelta(0):
            raise ValueError("scheduler interval must be positive")
        self.sweeper = sweeper
        self.interval = interval
        self.tick_timeout = tick_timeout

        self._stop_event: Optional[asyncio.Event] = None
        self._loop_task: Optional[asyncio.Task] = None
        self._tick_task: Optional[asyncio.Task] = None
        self._tick_lock = asyncio.Lock()

        self.ticks_started = 0
        self.ticks_skipped = 0
        self.last_summary: Optional[SweepSummary] = None

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def tick_in_progress(self) -> bool:
        return self._tick_lock.locked() or (self._tick_task is not None and not self._tick_task.done())

    def start(self) -> None:
        """Spawn the background loop (must be called from a running event loop)"""
        if self.is_running:
            logger.warning("Reservation sweep scheduler already running")
            return
        self._stop_event = asyncio.Event()
        self._loop_task = asyncio.create_task(self._run_loop(), name="reservation-sweep-scheduler")
        logger.info(
            f"Reservation sweep scheduler started (interval={self.interval}, timeout={self.tick_timeout})"
        )

    async def stop(self, grace: Optional[timedelta] = None) -> None:
        """
        Stop the loop and wait for it to exit.

        An in-flight sweep gets ``grace`` (default: the tick timeout) to
        finish before it is cancelled.
        """
        if self._loop_task is None:
            return
        self._stop_event.set()
        await self._loop_task
        self._loop_task = None

        tick = self._tick_task
        if tick is not None and not tick.done():
            wait_for = (grace or self.tick_timeout).total_seconds()
            try:
                await asyncio.wait_for(asyncio.shield(tick), timeout=wait_for)
            except asyncio.TimeoutError:
                logger.warning("In-flight expiration sweep did not finish in time, cancelling it")
                tick.cancel()
                try:
                    await tick
                except asyncio.CancelledError:
                    pass
        self._tick_task = None
        logger.info("Reservation sweep scheduler stopped")

    async def run_now(self) -> SweepSummary:
        """Run one sweep immediately, after any in-flight sweep, and return its summary"""
        async with self._tick_lock:
            summary = await asyncio.wait_for(
                self.sweeper.run_once(), timeout=self.tick_timeout.total_seconds()
            )
        self.last_summary = summary
        return summary

    async def _run_loop(self) -> None:
        interval = self.interval.total_seconds()
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                self._trigger_tick()

    def _trigger_tick(self) -> None:
        if self.tick_in_progress:
            self.ticks_skipped += 1
            logger.warning("Previous expiration sweep still running, skipping this tick")
            return
        self.ticks_started += 1
        self._tick_task = asyncio.create_task(self._run_tick(), name="reservation-sweep-tick")

    async def _run_tick(self) -> None:
        async with self._tick_lock:
            try:
                self.last_summary = await asyncio.wait_for(
                    self.sweeper.run_once(), timeout=self.tick_timeout.total_seconds()
                )
            except asyncio.TimeoutError:
                logger.error(f"Expiration sweep exceeded {self.tick_timeout} and was cancelled")
            except Exception as e:
                logger.error(f"Expiration sweep failed: {e}")
