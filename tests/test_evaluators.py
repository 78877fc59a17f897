"""Tests for alert parsing and the per-type condition evaluators."""
import pytest

from defi_alerts.schemas import (AlertType, Direction, InvalidAlertRulesError,
                                 PortfolioBalance, PortfolioToken, Severity,
                                 parse_alert)
from defi_alerts.services.evaluators import (PortfolioValueEvaluator,
                                             PriceChangeEvaluator,
                                             UnsupportedEvaluator,
                                             default_evaluators,
                                             deviation_percent)
from factories import portfolio_rules, price_rules


def _portfolio(native: float = 0.0, **usd_by_symbol) -> PortfolioBalance:
    return PortfolioBalance(
        address="0xabc",
        native=native,
        tokens=[PortfolioToken(symbol=s, usd=v) for s, v in usd_by_symbol.items()],
    )


class TestParseAlert:
    """Turning stored rows into rule variants."""

    def test_price_change_rule(self):
        alert = parse_alert(1, 7, "price_change", price_rules())
        assert alert.alert_type is AlertType.PRICE_CHANGE
        assert alert.rule.token == "ETH"
        assert alert.rule.threshold == 3000
        assert alert.rule.direction is Direction.ABOVE

    @pytest.mark.parametrize(
        "rules",
        [None, {}, {"conditions": {"token": "ETH"}}, {"type": ""}, "price_change"],
    )
    def test_missing_rules_type_is_invalid(self, rules):
        with pytest.raises(InvalidAlertRulesError):
            parse_alert(1, 7, "price_change", rules)

    def test_unknown_rules_type_is_invalid(self):
        with pytest.raises(InvalidAlertRulesError):
            parse_alert(1, 7, "price_change", {"type": "moon", "conditions": {}})

    @pytest.mark.parametrize("alert_type", [None, "", "gas_price"])
    def test_unknown_alert_type_is_invalid(self, alert_type):
        with pytest.raises(InvalidAlertRulesError):
            parse_alert(1, 7, alert_type, price_rules())

    def test_bad_conditions_are_invalid(self):
        with pytest.raises(InvalidAlertRulesError):
            parse_alert(1, 7, "price_change", price_rules(direction="sideways"))
        with pytest.raises(InvalidAlertRulesError):
            parse_alert(1, 7, "portfolio_value", portfolio_rules(threshold=-5))

    def test_liquidation_risk_keeps_raw_conditions(self):
        alert = parse_alert(
            3, 7, "liquidation_risk", {"type": "liquidation_risk", "conditions": {"ltv": 0.8}}
        )
        assert alert.alert_type is AlertType.LIQUIDATION_RISK
        assert alert.rule.conditions == {"ltv": 0.8}


class TestPriceChangeEvaluator:
    """price_change: one token's USD value against a threshold."""

    evaluator = PriceChangeEvaluator()

    def test_triggers_above_threshold(self):
        alert = parse_alert(1, 7, "price_change", price_rules())
        verdict = self.evaluator.evaluate(alert, _portfolio(ETH=3100))

        assert verdict.triggered
        draft = verdict.notification
        assert draft.severity is Severity.WARNING
        assert "3100" in draft.message
        assert "above $3000" in draft.message
        assert draft.title == "ETH Price Alert Triggered"
        assert draft.metadata["changePercent"] == pytest.approx(3.33)

    def test_does_not_trigger_below_threshold_for_above(self):
        alert = parse_alert(1, 7, "price_change", price_rules())
        verdict = self.evaluator.evaluate(alert, _portfolio(ETH=2900))
        assert not verdict.triggered
        assert verdict.notification is None
        assert not verdict.skipped

    def test_equal_to_threshold_does_not_trigger(self):
        alert = parse_alert(1, 7, "price_change", price_rules())
        assert not self.evaluator.evaluate(alert, _portfolio(ETH=3000)).triggered

    def test_triggers_below_threshold(self):
        alert = parse_alert(1, 7, "price_change", price_rules(threshold=2000, direction="below"))
        verdict = self.evaluator.evaluate(alert, _portfolio(ETH=1800))
        assert verdict.triggered
        assert "below $2000" in verdict.notification.message
        assert verdict.notification.metadata["changePercent"] == pytest.approx(10.0)

    def test_symbol_match_is_case_insensitive(self):
        alert = parse_alert(1, 7, "price_change", price_rules(token="eth"))
        assert self.evaluator.evaluate(alert, _portfolio(ETH=3100)).triggered

    def test_missing_token_is_skipped(self):
        alert = parse_alert(1, 7, "price_change", price_rules(token="BTC"))
        verdict = self.evaluator.evaluate(alert, _portfolio(ETH=3100))
        assert not verdict.triggered
        assert verdict.skipped

    def test_token_without_usd_is_skipped(self):
        alert = parse_alert(1, 7, "price_change", price_rules())
        portfolio = PortfolioBalance(address="0xabc", tokens=[PortfolioToken(symbol="ETH")])
        verdict = self.evaluator.evaluate(alert, portfolio)
        assert verdict.skipped


class TestPortfolioValueEvaluator:
    """portfolio_value: native plus every token against a threshold."""

    evaluator = PortfolioValueEvaluator()

    def test_triggers_below_threshold(self):
        alert = parse_alert(2, 7, "portfolio_value", portfolio_rules())
        verdict = self.evaluator.evaluate(alert, _portfolio(native=1000, ETH=5000, USDC=2000))

        assert verdict.triggered
        assert verdict.notification.severity is Severity.INFO
        assert verdict.notification.metadata["currentValue"] == 8000
        assert "below $10000" in verdict.notification.message

    def test_does_not_trigger_when_above_for_below(self):
        alert = parse_alert(2, 7, "portfolio_value", portfolio_rules())
        assert not self.evaluator.evaluate(alert, _portfolio(ETH=12000)).triggered

    def test_tokens_without_usd_count_as_zero(self):
        alert = parse_alert(2, 7, "portfolio_value", portfolio_rules(threshold=100, direction="above"))
        portfolio = PortfolioBalance(
            address="0xabc",
            tokens=[PortfolioToken(symbol="ETH", usd=150), PortfolioToken(symbol="JUNK")],
        )
        assert self.evaluator.evaluate(alert, portfolio).triggered


class TestRegistry:
    def test_every_alert_type_has_an_evaluator(self):
        assert set(default_evaluators()) == set(AlertType)

    def test_unsupported_types_never_trigger(self):
        alert = parse_alert(
            3, 7, "liquidation_risk", {"type": "liquidation_risk", "conditions": {}}
        )
        evaluator = UnsupportedEvaluator(AlertType.LIQUIDATION_RISK)
        verdict = evaluator.evaluate(alert, None)
        assert not verdict.triggered
        assert verdict.skipped
        assert not evaluator.needs_portfolio


def test_deviation_percent_is_positive_once_crossed():
    assert deviation_percent(110, 100, Direction.ABOVE) == pytest.approx(10)
    assert deviation_percent(90, 100, Direction.BELOW) == pytest.approx(10)
