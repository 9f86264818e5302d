# backend-services/stock-service/services/price_refresher.py
"""
Periodic price refresher.

Simulates live market data by overwriting every stored price with a random
value on a fixed interval:
- Reads a snapshot of all records at the start of a tick.
- Issues one independent update per record on a thread pool and waits for the
  whole batch to settle before the tick is reported complete.
- Never lets ticks overlap: a tick that fires while the previous one is still
  running is skipped, both by APScheduler (max_instances=1) and by run_tick
  itself for manual triggers.

A failed update is logged and counted; it never aborts the other updates or
stops the schedule.
"""
import logging
import math
import random
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from pymongo import errors

from shared.contracts import MAX_SIMULATED_PRICE, RefreshSummary

logger = logging.getLogger(__name__)


class PriceRefresher:
    JOB_ID = "refresh_stock_prices"

    def __init__(
        self,
        store,
        interval_seconds: float = 5,
        max_workers: int = 10,
        rng: Optional[random.Random] = None,
        scheduler=None,
    ) -> None:
        if not interval_seconds > 0 or not math.isfinite(interval_seconds):
            raise ValueError("Refresh interval must be a positive, finite number of seconds")
        self._store = store
        self._interval_seconds = interval_seconds
        self._rng = rng or random.Random()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="price-refresh")
        self._scheduler = scheduler or BackgroundScheduler(daemon=True)
        self._tick_lock = threading.Lock()
        self._started = False

    @property
    def interval_seconds(self) -> float:
        return self._interval_seconds

    @property
    def running(self) -> bool:
        return self._started

    def generate_price(self) -> float:
        """Uniform in [0, MAX_SIMULATED_PRICE)."""
        return self._rng.random() * MAX_SIMULATED_PRICE

    def _update_one(self, record_id, new_price: float) -> bool:
        """Returns False when the record vanished between snapshot and update."""
        return self._store.update_by_id(record_id, {"price": new_price}) is not None

    def run_tick(self) -> RefreshSummary:
        """
        Runs one refresh tick and blocks until every per-record update settles.

        Returns a RefreshSummary; `skipped` is set when another tick was
        already in progress and this one did nothing.
        """
        if not self._tick_lock.acquire(blocking=False):
            logger.warning("Price refresh skipped: previous tick still running.")
            return RefreshSummary(skipped=True)
        try:
            return self._run_tick_locked()
        finally:
            self._tick_lock.release()

    def _run_tick_locked(self) -> RefreshSummary:
        summary = RefreshSummary()
        try:
            snapshot = self._store.find({})
        except errors.PyMongoError as e:
            logger.error(f"Price refresh: failed to read stock snapshot: {e}", exc_info=True)
            return summary

        summary.total = len(snapshot)
        if not snapshot:
            logger.debug("Price refresh: no stocks to update.")
            return summary

        future_to_record = {
            self._executor.submit(self._update_one, record.id, self.generate_price()): record
            for record in snapshot
        }
        for future in as_completed(future_to_record):
            record = future_to_record[future]
            try:
                if future.result():
                    summary.updated += 1
                else:
                    summary.missing += 1
                    logger.info(f"Price refresh: stock {record.symbol} ({record.id}) was removed before its update.")
            except Exception as exc:
                summary.failed += 1
                logger.error(f"Error updating stock {record.symbol} ({record.id}): {exc}", exc_info=True)

        logger.info(
            f"Price refresh complete: {summary.updated}/{summary.total} updated, "
            f"{summary.missing} missing, {summary.failed} failed."
        )
        return summary

    def start(self) -> None:
        """Schedules run_tick every `interval_seconds`. Calling it twice is a no-op."""
        if self._started:
            return
        self._scheduler.add_job(
            self.run_tick,
            IntervalTrigger(seconds=self._interval_seconds),
            id=self.JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self._scheduler.start()
        self._started = True
        logger.info(f"Price refresher started (every {self._interval_seconds}s).")

    def shutdown(self, wait: bool = False) -> None:
        """Stops the schedule and the worker pool. Safe to call more than once."""
        if self._started:
            self._scheduler.shutdown(wait=wait)
            self._started = False
            logger.info("Price refresher stopped.")
        self._executor.shutdown(wait=wait)
