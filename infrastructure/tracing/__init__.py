"""Per-request trace line storage."""

from infrastructure.tracing.log_handler import CorrelationLogHandler
from infrastructure.tracing.memory_collector import InMemoryLogCollector

__all__ = ["CorrelationLogHandler", "InMemoryLogCollector"]
