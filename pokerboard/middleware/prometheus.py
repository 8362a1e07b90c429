"""Prometheus metrics: HTTP instrumentation plus ledger counters."""

from fastapi import FastAPI
from prometheus_client import Counter, Info
from prometheus_fastapi_instrumentator import Instrumentator, metrics

# =============================================================================
# Custom Metrics
# =============================================================================

APP_INFO = Info("pokerboard_app", "Application information")

LEDGER_TRANSACTIONS = Counter(
    "pokerboard_ledger_transactions_total",
    "Ledger rows written",
    ["type"],  # BUY_IN, REBUY, CASH_OUT
)

LEDGER_AMOUNT = Counter(
    "pokerboard_ledger_amount_total",
    "Sum of ledger amounts",
    ["type"],
)

SESSIONS_CREATED = Counter(
    "pokerboard_sessions_created_total",
    "Game sessions created",
)

SETTLEMENTS_SAVED = Counter(
    "pokerboard_settlements_saved_total",
    "Settlement saves (each replaces the previous rows of a session)",
)


# =============================================================================
# Instrumentator Setup
# =============================================================================


def setup_prometheus(app: FastAPI, app_version: str = "1.0.0") -> Instrumentator:
    """Instrument the app and expose ``/metrics``."""
    APP_INFO.info({
        "version": app_version,
        "app_name": "pokerboard",
    })

    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        should_respect_env_var=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/health", "/health/live", "/health/ready", "/metrics"],
        inprogress_name="pokerboard_http_requests_inprogress",
        inprogress_labels=True,
    )

    instrumentator.add(
        metrics.default(
            metric_namespace="pokerboard",
            metric_subsystem="http",
            latency_highr_buckets=(0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5),
        )
    )

    instrumentator.instrument(app)
    instrumentator.expose(app, endpoint="/metrics", include_in_schema=True, tags=["Monitoring"])

    return instrumentator


# =============================================================================
# Metric Helper Functions
# =============================================================================


def record_ledger_transaction(transaction_type: str, amount: float) -> None:
    """Count one ledger row and its amount."""
    LEDGER_TRANSACTIONS.labels(type=transaction_type).inc()
    LEDGER_AMOUNT.labels(type=transaction_type).inc(amount)


def record_session_created() -> None:
    SESSIONS_CREATED.inc()


def record_settlement_saved() -> None:
    SETTLEMENTS_SAVED.inc()
