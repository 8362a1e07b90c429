"""Sentry error tracking integration.

- Automatic error capture for unexpected exceptions
- User context set by the auth dependency
- Ledger breadcrumbs, so a crash report shows the chip moves before it
"""

import logging
import os
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from pokerboard.utils.errors import PokerboardError


def init_sentry(
    dsn: str | None = None,
    environment: str = "development",
    release: str | None = None,
    traces_sample_rate: float = 0.1,
    profiles_sample_rate: float = 0.1,
) -> bool:
    """Initialize Sentry SDK.

    Args:
        dsn: Sentry DSN. If None, uses the SENTRY_DSN env var.
        environment: Environment name (development, staging, production)
        release: Release version string
        traces_sample_rate: Share of transactions to trace (0.0 to 1.0)
        profiles_sample_rate: Share of transactions to profile (0.0 to 1.0)

    Returns:
        True if Sentry was initialized, False otherwise
    """
    sentry_dsn = dsn or os.getenv("SENTRY_DSN")

    if not sentry_dsn:
        return False

    logging_integration = LoggingIntegration(
        level=logging.INFO,  # breadcrumbs
        event_level=logging.ERROR,  # events
    )

    sentry_sdk.init(
        dsn=sentry_dsn,
        environment=environment,
        release=release or os.getenv("APP_VERSION", "1.0.0"),
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            logging_integration,
        ],
        traces_sample_rate=traces_sample_rate,
        profiles_sample_rate=profiles_sample_rate,
        send_default_pii=False,
        before_send=_before_send,
        before_send_transaction=_before_send_transaction,
    )

    return True


def _before_send(event: dict, hint: dict) -> dict | None:
    """Drop expected business errors (auth failures, ledger rule violations)."""
    if "exc_info" in hint:
        exc_type, _, _ = hint["exc_info"]
        if issubclass(exc_type, PokerboardError) or exc_type.__name__ == "ValidationError":
            return None

    return event


def _before_send_transaction(event: dict, hint: dict) -> dict | None:
    """Drop health check and metrics scrapes."""
    transaction_name = event.get("transaction", "")
    if any(path in transaction_name for path in ["/health", "/metrics"]):
        return None

    return event


def set_user_context(user_id: str, email: str | None = None) -> None:
    sentry_sdk.set_user({"id": user_id, "email": email})


def add_breadcrumb(
    message: str,
    category: str = "ledger",
    level: str = "info",
    data: dict[str, Any] | None = None,
) -> None:
    """Add a breadcrumb for debugging."""
    sentry_sdk.add_breadcrumb(
        message=message,
        category=category,
        level=level,
        data=data,
    )
