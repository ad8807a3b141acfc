"""Application settings read from the ``[custom]`` section of ``domain.toml``."""

from protean.utils.globals import current_domain

DEFAULTS = {
    "CURRENCY": "USD",
    "TAX_RATE": 0.0,
    "ORDER_NUMBER_PREFIX": "PC",
    "MAX_UPLOAD_BYTES": 50 * 1024 * 1024,
    "UPLOAD_ROOT": "storage",
    "GATEWAY_TIMEOUT_SECONDS": 10.0,
    "ALLOW_FAKE_GATEWAYS": False,
}


def setting(name: str):
    """Return a custom setting for the active domain, falling back to the built-in default."""
    custom = current_domain.config.get("custom") or {}
    return custom.get(name, DEFAULTS.get(name))


def currency() -> str:
    return str(setting("CURRENCY")).upper()


def tax_rate() -> float:
    return float(setting("TAX_RATE") or 0.0)
