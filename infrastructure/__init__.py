"""
Infrastructure Layer for LogPack.

This package contains reference implementations of the ports in
application/ports:
- tracing/: In-memory trace collector and the logging bridge feeding it
- sinks/: Archive destinations (local directory, HTTP upload)
- notifications/: Capture notifications (webhook, application log)
- reporting/: Error reporters (application log, Sentry)
"""
