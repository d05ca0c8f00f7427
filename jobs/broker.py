"""
Dramatiq broker configuration.

Redis-based message broker for the claim notification queue. Tests run
against an in-memory StubBroker.
"""

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.brokers.stub import StubBroker
from dramatiq.middleware import CurrentMessage, Retries, ShutdownNotifications
from loguru import logger

from heaven.config.settings import settings


def create_broker() -> dramatiq.Broker:
    """
    Build the broker for the current environment.

    Returns:
        StubBroker under ENVIRONMENT=test, RedisBroker otherwise
    """
    if settings.environment == "test":
        return StubBroker()

    redis_broker = RedisBroker(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password if settings.redis_password else None,
        db=settings.redis_db,
    )

    # ShutdownNotifications: lets workers finish on shutdown
    # CurrentMessage: exposes the message to actors
    # Retries: exponential backoff for failed deliveries
    redis_broker.add_middleware(ShutdownNotifications())
    redis_broker.add_middleware(CurrentMessage())
    redis_broker.add_middleware(
        Retries(
            max_retries=3,
            min_backoff=1000,  # 1 second
            max_backoff=60000,  # 1 minute
        )
    )
    return redis_broker


broker = create_broker()
dramatiq.set_broker(broker)

logger.info(
    f"Dramatiq broker initialized: {type(broker).__name__} "
    f"(environment={settings.environment})"
)
