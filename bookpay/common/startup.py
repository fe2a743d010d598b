"""Startup-time helpers for safe config logging."""

import os

from fastapi import FastAPI
from fastapi.routing import APIRoute

from bookpay.common.logging import logger


def _safe_env(name: str) -> str:
    """Return env value with redaction for secret-like variable names."""

    value = os.getenv(name)
    if value is None:
        return "<unset>"
    if any(secret in name for secret in ["SECRET", "PASSWORD", "TOKEN", "DSN"]):
        return "<redacted>"
    return value


def log_startup_config(service_name: str, keys: list[str]) -> None:
    """Log selected startup config keys for quick troubleshooting."""

    config = {"service": service_name}
    for key in keys:
        config[key] = _safe_env(key)
    logger.info("startup_config=%s", config)


def log_required_secrets(values: dict[str, str]) -> None:
    """Report each required setting as present or missing, never its value."""

    for key, value in values.items():
        if value:
            logger.info("required_secret_present name=%s", key)
        else:
            logger.error("required_secret_missing name=%s", key)


def log_registered_routes(app: FastAPI) -> None:
    """Log `METHOD path` for every API route mounted on the app."""

    for route in app.routes:
        if isinstance(route, APIRoute):
            methods = ", ".join(sorted(route.methods))
            logger.info("route_registered %s %s", methods, route.path)
