"""Archive dispatch: write the file, run the sinks, delete it, notify.

Dispatch never raises. Every failure (file write, sink, notifier, timeout)
is recorded in the DispatchReport and handed to the error reporter.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import string
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Sequence

from .archive import Archive
from .context import CaptureContext
from .errors import CaptureError, CaptureStage

if TYPE_CHECKING:
    from application.ports import ArchiveSink, ErrorReporter, NotificationService

logger = logging.getLogger(__name__)

SUFFIX_ALPHABET = string.ascii_letters + string.digits
SUFFIX_LENGTH = 6


def random_suffix(length: int = SUFFIX_LENGTH) -> str:
    return "".join(secrets.choice(SUFFIX_ALPHABET) for _ in range(length))


def archive_filename(archive: Archive, status_code: int, suffix: Optional[str] = None) -> str:
    """``logpack-<yyyyMMdd-HHmmss>-<status>-<suffix>.logpack``."""
    stamp = archive.created_at.strftime("%Y%m%d-%H%M%S")
    return f"logpack-{stamp}-{status_code}-{suffix or random_suffix()}.logpack"


@dataclass
class DispatchReport:
    """What happened to one archive."""

    path: Optional[Path] = None
    sinks: dict[str, bool] = field(default_factory=dict)
    notifications: dict[str, bool] = field(default_factory=dict)
    errors: list[CaptureError] = field(default_factory=list)

    @property
    def delivered(self) -> bool:
        return any(self.sinks.values())


class DispatchCoordinator:
    """Delivers finished archives to sinks and notification services."""

    def __init__(
        self,
        sinks: Sequence[ArchiveSink] = (),
        notification_services: Sequence[NotificationService] = (),
        work_dir: Path = Path("."),
        send_timeout: Optional[float] = 30.0,
        error_reporter: Optional[ErrorReporter] = None,
    ) -> None:
        self.sinks = list(sinks)
        self.notification_services = list(notification_services)
        self.work_dir = Path(work_dir)
        self.send_timeout = send_timeout
        self.error_reporter = error_reporter

    def _record(
        self,
        report: DispatchReport,
        context: CaptureContext,
        stage: CaptureStage,
        detail: str,
        exception: Optional[BaseException] = None,
    ) -> None:
        error = CaptureError(
            stage=stage,
            correlation_id=context.correlation_id,
            exception=exception,
            detail=detail,
        )
        report.errors.append(error)
        if self.error_reporter is not None:
            self.error_reporter.report(error)

    async def _send(
        self,
        call: Callable[[], Awaitable[bool]],
        report: DispatchReport,
        context: CaptureContext,
        stage: CaptureStage,
        name: str,
    ) -> bool:
        try:
            if self.send_timeout is None:
                ok = await call()
            else:
                ok = await asyncio.wait_for(call(), timeout=self.send_timeout)
        except asyncio.TimeoutError as e:
            self._record(report, context, stage, f"{name} timed out after {self.send_timeout}s", e)
            return False
        except Exception as e:
            self._record(report, context, stage, f"{name} failed", e)
            return False
        if not ok:
            self._record(report, context, stage, f"{name} reported failure")
        return bool(ok)

    async def dispatch(self, archive: Archive, context: CaptureContext) -> DispatchReport:
        report = DispatchReport()
        path = self.work_dir / archive_filename(archive, context.status_code)

        try:
            data = archive.to_bytes()
            await asyncio.to_thread(self.work_dir.mkdir, parents=True, exist_ok=True)
            await asyncio.to_thread(path.write_bytes, data)
            report.path = path
            logger.debug("Wrote archive %s (%d bytes)", path, len(data))

            for sink in self.sinks:
                name = type(sink).__name__
                report.sinks[name] = await self._send(
                    lambda: sink.send(str(path)), report, context, CaptureStage.SINK, name
                )
        except Exception as e:
            self._record(report, context, CaptureStage.DISPATCH, f"writing {path.name}", e)
        finally:
            try:
                await asyncio.to_thread(path.unlink, missing_ok=True)
            except OSError as e:
                self._record(report, context, CaptureStage.DISPATCH, f"deleting {path.name}", e)

        if report.path is None:
            return report

        # the archive file is gone at this point; notifiers only get its name
        for service in self.notification_services:
            name = type(service).__name__
            report.notifications[name] = await self._send(
                lambda: service.send(str(path), archive.metadata),
                report,
                context,
                CaptureStage.NOTIFICATION,
                name,
            )

        logger.info(
            "Dispatched %s to %d/%d sinks",
            path.name,
            sum(report.sinks.values()),
            len(self.sinks),
        )
        return report
