"""Alert definitions: one rule variant per alert type.

Rows are stored as ``(alert_type, rules)`` with ``rules = {"type", "conditions"}``.
``parse_alert`` turns a row into an ``AlertDefinition`` whose ``rule`` is a
tagged variant, so evaluators can be dispatched on ``rule.kind``.
"""
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError


class AlertType(str, Enum):
    """Alert types a user can create."""

    PRICE_CHANGE = "price_change"
    PORTFOLIO_VALUE = "portfolio_value"
    LIQUIDATION_RISK = "liquidation_risk"
    CUSTOM = "custom"


class Direction(str, Enum):
    """Which side of the threshold triggers the alert."""

    ABOVE = "above"
    BELOW = "below"


class InvalidAlertRulesError(ValueError):
    """Alert row cannot be turned into a rule variant."""


class PriceChangeRule(BaseModel):
    """Token price crosses a USD threshold."""

    kind: Literal[AlertType.PRICE_CHANGE] = AlertType.PRICE_CHANGE
    token: str = Field(min_length=1)
    threshold: float = Field(gt=0)
    direction: Direction
    chain: str | None = None
    percentage: float | None = None


class PortfolioValueRule(BaseModel):
    """Total portfolio USD value crosses a threshold."""

    kind: Literal[AlertType.PORTFOLIO_VALUE] = AlertType.PORTFOLIO_VALUE
    threshold: float = Field(gt=0)
    direction: Direction


class LiquidationRiskRule(BaseModel):
    """Declared for DeFi positions; not evaluated yet."""

    kind: Literal[AlertType.LIQUIDATION_RISK] = AlertType.LIQUIDATION_RISK
    conditions: dict[str, Any] = Field(default_factory=dict)


class CustomRule(BaseModel):
    """Free-form conditions; no evaluator ships for these."""

    kind: Literal[AlertType.CUSTOM] = AlertType.CUSTOM
    conditions: dict[str, Any] = Field(default_factory=dict)


AlertRule = Annotated[
    Union[PriceChangeRule, PortfolioValueRule, LiquidationRiskRule, CustomRule],
    Field(discriminator="kind"),
]

_rule_adapter: TypeAdapter = TypeAdapter(AlertRule)


class AlertDefinition(BaseModel):
    """An active alert as seen by the scheduler. Read-only."""

    id: int
    user_id: int
    name: str = ""
    rule: AlertRule
    is_active: bool = True

    @property
    def alert_type(self) -> AlertType:
        return self.rule.kind


def parse_alert(
    alert_id: int,
    user_id: int,
    alert_type: str | None,
    rules: Any,
    *,
    name: str = "",
    is_active: bool = True,
) -> AlertDefinition:
    """Build an AlertDefinition from stored fields.

    Raises:
        InvalidAlertRulesError: rules are missing, ``rules.type`` or
            ``alert_type`` is unknown, or the conditions fail validation.
    """
    if not isinstance(rules, dict) or not rules.get("type"):
        raise InvalidAlertRulesError(f"Alert {alert_id} has no rules.type")
    try:
        AlertType(rules["type"])
    except ValueError as exc:
        raise InvalidAlertRulesError(
            f"Alert {alert_id} has unrecognized rules.type {rules['type']!r}"
        ) from exc
    try:
        kind = AlertType(alert_type)
    except ValueError as exc:
        raise InvalidAlertRulesError(
            f"Alert {alert_id} has unrecognized alert type {alert_type!r}"
        ) from exc

    conditions = rules.get("conditions") or {}
    if not isinstance(conditions, dict):
        raise InvalidAlertRulesError(f"Alert {alert_id} conditions must be an object")

    try:
        rule = _rule_adapter.validate_python(
            {**conditions, "conditions": conditions, "kind": kind}
        )
    except ValidationError as exc:
        raise InvalidAlertRulesError(
            f"Alert {alert_id} has invalid {kind.value} conditions: {exc.errors()}"
        ) from exc

    return AlertDefinition(
        id=alert_id, user_id=user_id, name=name, rule=rule, is_active=is_active
    )
