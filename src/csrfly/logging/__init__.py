"""csrfly logging — hexagonal logging port and the structlog adapter."""

from csrfly.logging.port import LoggingPort
from csrfly.logging.structlog_adapter import StructlogAdapter, configure_logging

__all__ = ["LoggingPort", "StructlogAdapter", "configure_logging"]
