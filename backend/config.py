"""Application-wide configuration constants."""

import os

_PREFIX = "PORT_BOOTH_"


def _env(name: str, default: str) -> str:
    return os.environ.get(_PREFIX + name, default)


# --- API ---
API_HOST = _env("API_HOST", "0.0.0.0")
API_PORT = int(_env("API_PORT", "8766"))

# --- Gateway ---
# "ip:port" of the IGD control endpoint, empty when none is configured
GATEWAY_ADDRESS = _env("GATEWAY_ADDRESS", "")
GATEWAY_CONTROL_URL = _env("GATEWAY_CONTROL_URL", "/ctl/IPConn")
REQUEST_TIMEOUT = float(_env("REQUEST_TIMEOUT", "10"))  # seconds

# --- Port negotiation ---
MAX_RANDOM_PORT_ATTEMPTS = int(_env("MAX_RANDOM_PORT_ATTEMPTS", "20"))
RANDOM_PORT_MIN = int(_env("RANDOM_PORT_MIN", "32768"))
RANDOM_PORT_MAX = int(_env("RANDOM_PORT_MAX", "65535"))

# --- Mapping defaults ---
DEFAULT_LEASE_DURATION = int(_env("DEFAULT_LEASE_DURATION", "0"))  # 0 = infinite
DEFAULT_DESCRIPTION = _env("DEFAULT_DESCRIPTION", "Port Booth")

# --- Logging ---
LOG_LEVEL = _env("LOG_LEVEL", "INFO").upper()
