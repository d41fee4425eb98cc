"""Observability utilities for the interview engine."""
from .logger import attach_event_file, configure_logging, detach_event_handler, log_event
from .tracing import span

__all__ = ["attach_event_file", "configure_logging", "detach_event_handler", "log_event", "span"]
