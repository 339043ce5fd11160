"""
Background maintenance for the auth core: rate-limit counter sweeps and
store purges.
"""
import asyncio
import logging
from datetime import timedelta
from typing import Callable, Dict

from storefront_auth.app.services.rate_limiter import IRateLimiter
from storefront_auth.app.services.unit_of_work import UnitOfWork
from storefront_auth.app.use_cases.maintenance import PurgeExpiredRecordsUseCase

logger = logging.getLogger(__name__)

SWEEP_INTERVAL_SECONDS = 300
RETRY_DELAY_SECONDS = 60


class MaintenanceScheduler:
    """Runs the standing maintenance loops while the API is up"""

    def __init__(
        self,
        rate_limiter: IRateLimiter,
        uow_factory: Callable[[], UnitOfWork],
        purge_interval_seconds: int = 3600,
        audit_retention: timedelta = timedelta(days=90),
        sweep_interval_seconds: int = SWEEP_INTERVAL_SECONDS,
    ):
        self.rate_limiter = rate_limiter
        self.uow_factory = uow_factory
        self.purge_interval_seconds = purge_interval_seconds
        self.audit_retention = audit_retention
        self.sweep_interval_seconds = sweep_interval_seconds
        self.is_running = False
        self.tasks: Dict[str, asyncio.Task] = {}

    async def start(self):
        """Start all maintenance loops"""
        if self.is_running:
            return

        self.is_running = True
        logger.info("Starting maintenance scheduler")

        self.tasks["rate_limit_sweep"] = asyncio.create_task(self._sweep_loop())
        self.tasks["store_purge"] = asyncio.create_task(self._purge_loop())

    async def stop(self):
        """Stop all maintenance loops"""
        if not self.is_running:
            return

        self.is_running = False
        logger.info("Stopping maintenance scheduler")

        for task_name, task in self.tasks.items():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                logger.info(f"Cancelled task: {task_name}")

        self.tasks.clear()

    async def run_sweep(self) -> int:
        removed = await self.rate_limiter.sweep()
        if removed:
            logger.info(f"Swept {removed} expired rate limit counters")
        return removed

    async def run_purge(self):
        use_case = PurgeExpiredRecordsUseCase(self.uow_factory(), self.audit_retention)
        result = await use_case.execute()
        report = result.value
        logger.info(
            f"Purged {report.one_time_codes} codes, {report.audit_entries} audit "
            f"entries and {report.rate_limit_records} rate limit records"
        )
        return report

    async def _sweep_loop(self):
        while self.is_running:
            try:
                await asyncio.sleep(self.sweep_interval_seconds)
                await self.run_sweep()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in rate limit sweep loop: {e}")
                await asyncio.sleep(RETRY_DELAY_SECONDS)

    async def _purge_loop(self):
        while self.is_running:
            try:
                await self.run_purge()
                await asyncio.sleep(self.purge_interval_seconds)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in store purge loop: {e}")
                await asyncio.sleep(RETRY_DELAY_SECONDS)
