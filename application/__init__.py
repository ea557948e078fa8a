"""
Application Layer for LogPack.

This package contains:
- ports/: Collaborator interfaces the capture pipeline depends on
  (trace storage, filters, sinks, notifications, error reporting)
"""
