"""
Configuration settings for netlab.

Values that make sense to tweak per machine are read from the environment
once, at import time.
"""

from __future__ import annotations

import os
from typing import Dict


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


# Pause between simulation steps, in seconds. Only affects animation pacing.
DEFAULT_STEP_DELAY = _env_float("NETLAB_STEP_DELAY", 0.4)

LOG_LEVEL = os.getenv("NETLAB_LOG_LEVEL", "WARNING").upper()
LOG_DIR = os.getenv("NETLAB_LOG_DIR") or None

DEFAULT_SUBNET_MASK = "255.255.255.0"
BROADCAST_MAC = "ff:ff:ff:ff:ff:ff"

# Fixed port count per device class (interfaces are never added later).
PORT_COUNTS: Dict[str, int] = {
    "PC": 1,
    "SERVER": 1,
    "ROUTER": 4,
    "SWITCH": 8,
    "HUB": 4,
}

# Interface name prefix per device class.
PORT_PREFIXES: Dict[str, str] = {
    "PC": "eth",
    "SERVER": "eth",
    "ROUTER": "eth",
    "SWITCH": "port",
    "HUB": "port",
}

RTT_MS_PER_HOP = 10
DEFAULT_TTL = 64

# Basic validation: score lost per warning.
WARNING_PENALTY = 10
