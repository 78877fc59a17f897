"""AURA portfolio data provider."""
from defi_alerts.providers.aura.aura_provider import AuraProvider

__all__ = ["AuraProvider"]
