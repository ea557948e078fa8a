"""
Bridge from the logging module into a LogCollector.

Attach CorrelationLogHandler to a logger (usually the root logger) and every
record emitted while LogPack handles a request is also written to that
request's trace lines, so application logs end up in trace.log. Records
emitted after the request completed (background tasks) are dropped.
"""

import logging

from application.ports import LogCollector
from logpack.capture.state import current_binding

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class CorrelationLogHandler(logging.Handler):
    """logging.Handler that copies records into the current request's trace."""

    def __init__(self, collector: LogCollector, level: int = logging.NOTSET):
        super().__init__(level)
        self.collector = collector
        self.setFormatter(logging.Formatter(DEFAULT_FORMAT))

    def emit(self, record: logging.LogRecord) -> None:
        binding = current_binding()
        if binding is None:
            return
        try:
            line = self.format(record)
            if binding.state is None:
                self.collector.trace(binding.correlation_id, line)
            else:
                binding.state.trace(binding.correlation_id, line, self.collector)
        except Exception:
            self.handleError(record)
