"""Process-wide service instances used by the HTTP routers.

Created lazily so settings overrides (tests, .env) are honoured.
"""

import asyncio
from typing import Optional

from fairplay.config import settings
from fairplay.services.audit_logger import AuditLogger
from fairplay.services.autoplay_service import AutoplayDriver
from fairplay.services.network import LocalGameNetwork
from fairplay.services.stats_store import StatsStore

_network: Optional[LocalGameNetwork] = None
_driver: Optional[AutoplayDriver] = None
_audit_logger: Optional[AuditLogger] = None
autoplay_task: Optional[asyncio.Task] = None


def get_network() -> LocalGameNetwork:
    global _network
    if _network is None:
        _network = LocalGameNetwork()
    return _network


def get_driver() -> AutoplayDriver:
    global _driver
    if _driver is None:
        _driver = AutoplayDriver(get_network(), store=StatsStore(settings.stats_dir))
    return _driver


def get_audit_logger() -> AuditLogger:
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger(settings.audit_dir)
    return _audit_logger


def reset():
    """Drop all instances (stops a running driver first)."""
    global _network, _driver, _audit_logger, autoplay_task
    if _driver is not None:
        _driver.stop()
    _network = None
    _driver = None
    _audit_logger = None
    autoplay_task = None
