"""Condition evaluators, one per alert type.

Evaluators are pure: they get a parsed alert plus the portfolio snapshot the
scheduler fetched for it and return a Verdict. Fetching, persisting and
publishing happen in the scheduler and recorder.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from defi_alerts.schemas import (AlertDefinition, AlertType, Direction,
                                 NotificationDraft, PortfolioBalance, Severity)
from defi_alerts.utils import format_amount

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Verdict:
    """Outcome of evaluating one alert.

    ``skipped`` marks alerts that could not be evaluated (no wallet, token not
    held, unsupported type); they count as not triggered.
    """

    triggered: bool
    notification: NotificationDraft | None = None
    reason: str = ""
    skipped: bool = False

    @classmethod
    def skip(cls, reason: str) -> "Verdict":
        return cls(triggered=False, reason=reason, skipped=True)

    @classmethod
    def not_triggered(cls, reason: str = "") -> "Verdict":
        return cls(triggered=False, reason=reason)


def crosses(current: float, threshold: float, direction: Direction) -> bool:
    """True when ``current`` is strictly past ``threshold`` on the given side."""
    if direction is Direction.ABOVE:
        return current > threshold
    return current < threshold


def deviation_percent(current: float, threshold: float, direction: Direction) -> float:
    """Distance past the threshold as a percentage of it (positive once crossed)."""
    if direction is Direction.ABOVE:
        return (current - threshold) / threshold * 100
    return (threshold - current) / threshold * 100


class AlertEvaluator(ABC):
    """Evaluates alerts of one type."""

    alert_type: AlertType
    needs_portfolio: bool = True

    @abstractmethod
    def evaluate(
        self, alert: AlertDefinition, portfolio: PortfolioBalance | None
    ) -> Verdict:
        """Compare live data against the alert's condition."""


class PriceChangeEvaluator(AlertEvaluator):
    """Token USD value crossing a threshold."""

    alert_type = AlertType.PRICE_CHANGE

    def evaluate(
        self, alert: AlertDefinition, portfolio: PortfolioBalance | None
    ) -> Verdict:
        rule = alert.rule
        if portfolio is None:
            return Verdict.skip("no portfolio data")

        token = portfolio.find_token(rule.token)
        if token is None or not token.usd:
            logger.debug(
                "Token %s not found in portfolio for alert %s", rule.token, alert.id
            )
            return Verdict.skip(f"token {rule.token} not held")

        current = float(token.usd)
        if not crosses(current, rule.threshold, rule.direction):
            return Verdict.not_triggered(
                f"{rule.token} ${current:.2f} not {rule.direction.value} ${format_amount(rule.threshold)}"
            )

        change = deviation_percent(current, rule.threshold, rule.direction)
        draft = NotificationDraft(
            title=f"{rule.token} Price Alert Triggered",
            message=(
                f"{rule.token} is now ${current:.2f} "
                f"({rule.direction.value} ${format_amount(rule.threshold)})"
            ),
            severity=Severity.WARNING,
            metadata={
                "token": rule.token,
                "currentPrice": current,
                "threshold": rule.threshold,
                "direction": rule.direction.value,
                "changePercent": round(change, 2),
            },
        )
        return Verdict(triggered=True, notification=draft, reason=draft.message)


class PortfolioValueEvaluator(AlertEvaluator):
    """Total portfolio USD value crossing a threshold."""

    alert_type = AlertType.PORTFOLIO_VALUE

    def evaluate(
        self, alert: AlertDefinition, portfolio: PortfolioBalance | None
    ) -> Verdict:
        rule = alert.rule
        if portfolio is None:
            return Verdict.skip("no portfolio data")

        total = portfolio.total_usd
        if not crosses(total, rule.threshold, rule.direction):
            return Verdict.not_triggered(
                f"portfolio ${total:.2f} not {rule.direction.value} ${format_amount(rule.threshold)}"
            )

        draft = NotificationDraft(
            title="Portfolio Value Alert",
            message=(
                f"Your portfolio is now ${total:.2f} "
                f"({rule.direction.value} ${format_amount(rule.threshold)})"
            ),
            severity=Severity.INFO,
            metadata={
                "currentValue": total,
                "threshold": rule.threshold,
                "direction": rule.direction.value,
            },
        )
        return Verdict(triggered=True, notification=draft, reason=draft.message)


class UnsupportedEvaluator(AlertEvaluator):
    """Recognized alert type with no evaluation logic yet; never triggers."""

    needs_portfolio = False

    def __init__(self, alert_type: AlertType) -> None:
        self.alert_type = alert_type

    def evaluate(
        self, alert: AlertDefinition, portfolio: PortfolioBalance | None
    ) -> Verdict:
        logger.debug(
            "%s alerts are not supported yet (alert %s)", self.alert_type.value, alert.id
        )
        return Verdict.skip(f"{self.alert_type.value} not supported")


def default_evaluators() -> dict[AlertType, AlertEvaluator]:
    """Evaluator registry covering every AlertType."""
    evaluators: list[AlertEvaluator] = [
        PriceChangeEvaluator(),
        PortfolioValueEvaluator(),
        UnsupportedEvaluator(AlertType.LIQUIDATION_RISK),
        UnsupportedEvaluator(AlertType.CUSTOM),
    ]
    return {evaluator.alert_type: evaluator for evaluator in evaluators}
