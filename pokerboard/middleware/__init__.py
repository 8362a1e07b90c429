"""Sentry and Prometheus integration."""
