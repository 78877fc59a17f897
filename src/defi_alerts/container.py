"""DI container: the composition root for the alert pipeline.

main.create_app() attaches an instance to app.state.container; deps.py
resolves services from it. Tests override providers (engine, store,
portfolio_provider, scheduler) before building the app.
"""
from dependency_injector import containers, providers

from defi_alerts.db.sessions import create_db_engine
from defi_alerts.providers import AuraProvider
from defi_alerts.services import (AlertScheduler, NotificationBus,
                                  NotificationRecorder, PortfolioService,
                                  SqlAlertStore, default_evaluators)


class Container(containers.DeclarativeContainer):
    engine = providers.Singleton(create_db_engine)
    store = providers.Singleton(SqlAlertStore, engine)

    portfolio_provider = providers.Singleton(AuraProvider)
    portfolio_service = providers.Singleton(PortfolioService, portfolio_provider)

    bus = providers.Singleton(NotificationBus)
    recorder = providers.Singleton(NotificationRecorder, store, bus)
    evaluators = providers.Singleton(default_evaluators)

    scheduler = providers.Singleton(
        AlertScheduler,
        store=store,
        provider=portfolio_provider,
        recorder=recorder,
        evaluators=evaluators,
    )
