"""Periodic, mutually exclusive, fault-isolated evaluation of active alerts."""
import asyncio
import logging
import time

from defi_alerts import config
from defi_alerts.db.models import PortfolioAlert
from defi_alerts.providers.core import PortfolioProviderABC
from defi_alerts.schemas import (AlertType, CycleSummary,
                                 InvalidAlertRulesError, SchedulerStatus,
                                 parse_alert)
from defi_alerts.services.evaluators import (AlertEvaluator, Verdict,
                                             default_evaluators)
from defi_alerts.services.protocols import AlertStore
from defi_alerts.services.recorder import NotificationRecorder
from defi_alerts.utils import utcnow

logger = logging.getLogger(__name__)


class AlertScheduler:
    """Drives evaluation cycles over every active alert.

    One recurring timer task spawns a cycle every ``interval_seconds`` (plus a
    warm-up cycle ``warmup_delay_seconds`` after start). Cycles run as their own
    tasks so a slow cycle never holds up the timer; the run guard makes any
    tick that lands while a cycle is in progress a logged no-op.

    Within a cycle alerts are checked one by one in store order. Each alert is
    evaluated, recorded and published before the next one starts, and any
    failure is confined to that alert.
    """

    def __init__(
        self,
        store: AlertStore,
        provider: PortfolioProviderABC,
        recorder: NotificationRecorder,
        evaluators: dict[AlertType, AlertEvaluator] | None = None,
        *,
        interval_seconds: float | None = None,
        warmup_delay_seconds: float | None = None,
        fetch_timeout_seconds: float | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            store: Source of active alerts and wallets.
            provider: Portfolio data provider.
            recorder: Dedups, stores and publishes notifications.
            evaluators: Evaluator per alert type. Defaults to default_evaluators().
            interval_seconds: Timer period. Defaults to ALERT_CHECK_INTERVAL_SECONDS.
            warmup_delay_seconds: Delay of the first cycle after start().
            fetch_timeout_seconds: Bound on each portfolio fetch.
        """
        self._store = store
        self._provider = provider
        self._recorder = recorder
        self._evaluators = evaluators if evaluators is not None else default_evaluators()
        self._interval = (
            interval_seconds
            if interval_seconds is not None
            else config.ALERT_CHECK_INTERVAL_SECONDS
        )
        self._warmup_delay = (
            warmup_delay_seconds
            if warmup_delay_seconds is not None
            else config.ALERT_WARMUP_DELAY_SECONDS
        )
        self._fetch_timeout = (
            fetch_timeout_seconds
            if fetch_timeout_seconds is not None
            else config.ALERT_EVALUATION_TIMEOUT_SECONDS
        )

        self._timer: asyncio.Task | None = None
        self._cycles: set[asyncio.Task] = set()
        self._cycle_running = False
        self._last_cycle: CycleSummary | None = None

    @property
    def started(self) -> bool:
        return self._timer is not None

    @property
    def cycle_running(self) -> bool:
        return self._cycle_running

    @property
    def last_cycle(self) -> CycleSummary | None:
        return self._last_cycle

    def status(self) -> SchedulerStatus:
        return SchedulerStatus(
            started=self.started,
            cycle_running=self._cycle_running,
            interval_seconds=self._interval,
            last_cycle=self._last_cycle,
        )

    def start(self) -> None:
        """Start the recurring timer. Must be called from a running event loop."""
        if self._timer is not None:
            logger.warning("AlertScheduler already running")
            return
        self._timer = asyncio.get_running_loop().create_task(
            self._run_timer(), name="alert-scheduler-timer"
        )
        logger.info(
            "AlertScheduler started - checking alerts every %ss (first check in %ss)",
            self._interval,
            self._warmup_delay,
        )

    def stop(self) -> None:
        """Cancel the timer. In-flight cycles finish on their own."""
        if self._timer is None:
            return
        self._timer.cancel()
        self._timer = None
        logger.info("AlertScheduler stopped")

    async def aclose(self, timeout: float | None = None) -> None:
        """Stop the timer and wait for in-flight cycles, cancelling any still
        running after ``timeout`` seconds. Call before closing the provider or
        the database engine.
        """
        self.stop()
        if not self._cycles:
            return
        timeout = timeout if timeout is not None else config.ALERT_SHUTDOWN_TIMEOUT_SECONDS
        cycles = set(self._cycles)
        logger.info("Waiting up to %ss for %d alert cycle(s) to finish", timeout, len(cycles))
        _, pending = await asyncio.wait(cycles, timeout=timeout)
        if pending:
            logger.warning("Cancelling %d alert cycle(s) still running at shutdown", len(pending))
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

    async def manual_check(self) -> CycleSummary | None:
        """Run one cycle now; returns None if a cycle was already in progress."""
        logger.info("Manual alert check triggered")
        return await self.run_cycle("manual")

    async def run_cycle(self, trigger: str = "timer") -> CycleSummary | None:
        """Evaluate every active alert once.

        Returns the cycle summary, or None when skipped because another cycle
        holds the run guard.
        """
        if self._cycle_running:
            logger.debug("Alert check already in progress, skipping %s run", trigger)
            return None
        self._cycle_running = True

        summary = CycleSummary(trigger=trigger, started_at=utcnow())
        started = time.perf_counter()
        try:
            logger.info("Starting alert check cycle (%s)", trigger)
            alerts = await self._store.list_active_alerts()
            logger.info("Found %d active alerts to check", len(alerts))

            for row in alerts:
                summary.checked += 1
                try:
                    verdict = await self.check_alert(row)
                except (asyncio.TimeoutError, TimeoutError):
                    summary.failed += 1
                    logger.warning(
                        "Portfolio fetch timed out after %ss for alert %s",
                        self._fetch_timeout,
                        row.id,
                    )
                    continue
                except Exception:  # pylint: disable=broad-except
                    summary.failed += 1
                    logger.exception("Error checking alert %s", row.id)
                    continue
                if verdict.triggered:
                    summary.triggered += 1
                elif verdict.skipped:
                    summary.skipped += 1
        except Exception:  # pylint: disable=broad-except
            logger.exception("Error in alert check cycle")
        finally:
            summary.duration_ms = round((time.perf_counter() - started) * 1000, 1)
            self._last_cycle = summary
            self._cycle_running = False

        logger.info(
            "Alert check completed (%s): %d checked, %d triggered, %d failed, %d skipped (%.1fms)",
            trigger,
            summary.checked,
            summary.triggered,
            summary.failed,
            summary.skipped,
            summary.duration_ms,
        )
        return summary

    async def check_alert(self, row: PortfolioAlert) -> Verdict:
        """Evaluate one stored alert and record a notification if it triggers.

        Raises:
            PortfolioProviderError: the portfolio fetch failed.
            asyncio.TimeoutError: the portfolio fetch exceeded its bound.
        """
        try:
            alert = parse_alert(
                row.id,
                row.user_id,
                row.alert_type,
                row.rules,
                name=row.name,
                is_active=row.is_active,
            )
        except InvalidAlertRulesError as exc:
            logger.warning("Alert %s has invalid rules: %s", row.id, exc)
            return Verdict.skip("invalid rules")

        evaluator = self._evaluators.get(alert.alert_type)
        if evaluator is None:
            logger.debug("Unsupported alert type: %s", alert.alert_type.value)
            return Verdict.skip(f"no evaluator for {alert.alert_type.value}")

        portfolio = None
        if evaluator.needs_portfolio:
            address = await self._store.find_active_wallet(alert.user_id)
            if not address:
                logger.debug(
                    "No active wallet for user %s, skipping alert %s",
                    alert.user_id,
                    alert.id,
                )
                return Verdict.skip("no active wallet")
            portfolio = await asyncio.wait_for(
                self._provider.get_portfolio_balance(address),
                timeout=self._fetch_timeout,
            )

        verdict = evaluator.evaluate(alert, portfolio)
        if verdict.triggered and verdict.notification is not None:
            logger.info("Alert %s triggered: %s", alert.id, verdict.reason)
            await self._recorder.record(alert, verdict.notification)
        return verdict

    async def _run_timer(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self._interval
        await asyncio.sleep(self._warmup_delay)
        self._spawn_cycle("warmup")
        while True:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            next_tick += self._interval
            self._spawn_cycle("timer")

    def _spawn_cycle(self, trigger: str) -> None:
        task = asyncio.get_running_loop().create_task(
            self.run_cycle(trigger), name=f"alert-cycle-{trigger}"
        )
        self._cycles.add(task)
        task.add_done_callback(self._cycles.discard)
