"""
Collaborator Interfaces (Ports) for LogPack.

The capture pipeline in logpack.capture only talks to its collaborators
through these Protocols. Reference implementations live in infrastructure/;
integrators can provide their own.

Architecture follows the Ports & Adapters (Hexagonal) pattern:
- Ports: Abstract interfaces defined here (what the pipeline needs)
- Adapters: Concrete implementations in infrastructure/ (how it's provided)

Usage:
    from application.ports import ArchiveSink

    class S3Sink:
        async def send(self, path: str) -> bool:
            ...
"""

# Per-request trace lines
from application.ports.log_collector import LogCollector

# Capture decision predicates
from application.ports.request_filter import RequestFilter

# Archive destinations
from application.ports.sink import ArchiveSink

# Completion signals
from application.ports.notification_service import NotificationService

# Recoverable pipeline errors
from application.ports.error_reporter import ErrorReporter

__all__ = [
    "LogCollector",
    "RequestFilter",
    "ArchiveSink",
    "NotificationService",
    "ErrorReporter",
]
