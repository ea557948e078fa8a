"""LogPack capture middleware.

Wraps every request, keeps a copy of both bodies, and after the handler
returned decides whether to archive the exchange. Capture problems are
recorded and never reach the client; the response always goes out as the
handler produced it.

Usage::

    from logpack.capture import LogPackMiddleware, LogPackOptions, PathFilter

    app.add_middleware(
        LogPackMiddleware,
        options=LogPackOptions(include=[PathFilter("/orders/*")]),
    )

Downstream code can opt a request out with ``logpack.capture.stop(request)``.
"""

import logging
from typing import Mapping, Optional

from fastapi import Request, Response
from starlette.background import BackgroundTasks
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from infrastructure.reporting.logging_reporter import LoggingErrorReporter
from infrastructure.tracing.memory_collector import InMemoryLogCollector

from .archive import ArchiveBuilder
from .buffer import buffer_response, decode_body, is_passthrough, read_request_body
from .context import CaptureContext, RequestSnapshot, ResponseSnapshot
from .dispatch import DispatchCoordinator
from .errors import CaptureOutcome, CaptureStage
from .filters import FilterChain
from .options import LogPackOptions
from .state import CorrelatedState, LogPackHandle, bind_correlation_id, unbind_correlation_id

logger = logging.getLogger(__name__)


class LogPackMiddleware(BaseHTTPMiddleware):
    """Middleware that archives diagnostics for failing or selected requests."""

    def __init__(
        self,
        app: ASGIApp,
        options: Optional[LogPackOptions] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        super().__init__(app)
        self.options = options if options is not None else LogPackOptions()
        self.log_collector = (
            self.options.log_collector
            if self.options.log_collector is not None
            else InMemoryLogCollector()
        )
        self.error_reporter = (
            self.options.error_reporter
            if self.options.error_reporter is not None
            else LoggingErrorReporter()
        )
        self.state = CorrelatedState(self.log_collector)
        self.filters = FilterChain(
            include=self.options.include,
            exclude=self.options.exclude,
            state=self.state,
            log_collector=self.log_collector,
            exclude_applies_to_errors=self.options.exclude_applies_to_errors,
        )
        self.builder = ArchiveBuilder(self.options, self.state, environ=environ)
        self.dispatcher = DispatchCoordinator(
            sinks=self.options.sinks,
            notification_services=self.options.notification_services,
            work_dir=self.options.work_dir,
            send_timeout=self.options.send_timeout,
            error_reporter=self.error_reporter,
        )

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = self.options.correlation_id_factory()
        self.state.begin(correlation_id)
        token = bind_correlation_id(correlation_id, self.state)
        request.state.logpack = LogPackHandle(correlation_id, self.state)
        try:
            try:
                return await self._intercept(request, call_next, correlation_id)
            finally:
                self.state.cleanup(correlation_id)
                unbind_correlation_id(token)
        except Exception:
            logger.exception("LogPack middleware failed for request %s", correlation_id)
            raise

    async def _intercept(
        self, request: Request, call_next: RequestResponseEndpoint, correlation_id: str
    ) -> Response:
        outcome = CaptureOutcome(correlation_id)

        try:
            self.state.store_request_body(correlation_id, await read_request_body(request))
        except Exception as e:
            self._fail(outcome, CaptureStage.REQUEST_BODY, e)

        response_text: Optional[str] = None
        try:
            response = await call_next(request)
            if not is_passthrough(response, self.options.passthrough_media_types):
                response, body = await buffer_response(response)
                response_text = decode_body(body)
        except Exception as e:
            self._trace(correlation_id, f"Called middleware raised {type(e).__name__}: {e}")
            if self.options.capture_unhandled_errors:
                context = CaptureContext(
                    correlation_id=correlation_id,
                    request=RequestSnapshot.from_request(request),
                    response=ResponseSnapshot(status_code=500),
                )
                await self._decide_and_archive(outcome, context, None, None)
            self._finish(outcome)
            raise

        context = CaptureContext(
            correlation_id=correlation_id,
            request=RequestSnapshot.from_request(request),
            response=ResponseSnapshot.from_response(response),
        )
        await self._decide_and_archive(outcome, context, response_text, response)
        self._finish(outcome)
        return response

    async def _decide_and_archive(
        self,
        outcome: CaptureOutcome,
        context: CaptureContext,
        response_text: Optional[str],
        response: Optional[Response],
    ) -> None:
        try:
            outcome.decided = self.filters.should_capture(context)
        except Exception as e:
            self._fail(outcome, CaptureStage.DECISION, e)
            return
        if not outcome.decided:
            return

        try:
            archive = await self.builder.build(context, response_text)
        except Exception as e:
            self._fail(outcome, CaptureStage.ARCHIVE, e)
            return
        outcome.errors.extend(archive.errors)
        outcome.archived = True

        if self.options.dispatch_in_background and response is not None:
            tasks = BackgroundTasks([response.background] if response.background else None)
            tasks.add_task(self.dispatcher.dispatch, archive, context)
            response.background = tasks
        else:
            await self.dispatcher.dispatch(archive, context)

    def _trace(self, correlation_id: str, line: str) -> None:
        self.log_collector.trace(correlation_id, line)

    def _fail(self, outcome: CaptureOutcome, stage: CaptureStage, exception: Exception) -> None:
        error = outcome.record(stage, exception)
        self._trace(outcome.correlation_id, "Middleware ran into an exception:")
        self._trace(outcome.correlation_id, error.message)
        for line in error.format_traceback():
            self._trace(outcome.correlation_id, line)

    def _finish(self, outcome: CaptureOutcome) -> None:
        for error in outcome.errors:
            self.error_reporter.report(error)
        logger.debug(
            "LogPack %s: decided=%s archived=%s errors=%d",
            outcome.correlation_id,
            outcome.decided,
            outcome.archived,
            len(outcome.errors),
        )
