"""
Structured logging utility for the Nova product scraper.
Provides structured logs with trace IDs so a single scrape can be followed
from detection through extraction to the validity gate.
"""
import uuid
import logging
import structlog
from contextvars import ContextVar
from typing import Any, Dict, List, Optional

from nova.config import config

# One trace ID per scrape request; shared by every component it passes through
trace_id_var: ContextVar[str] = ContextVar("trace_id", default="")


def get_trace_id() -> str:
    """Trace ID of the scrape in progress, minted lazily for calls outside a request."""
    trace_id = trace_id_var.get()
    if not trace_id:
        trace_id = str(uuid.uuid4())[:8]
        trace_id_var.set(trace_id)
    return trace_id


def set_trace_id(trace_id: Optional[str] = None) -> str:
    """Start a new scrape trace (the API does this per request) and return its ID."""
    new_trace_id = trace_id or str(uuid.uuid4())[:8]
    trace_id_var.set(new_trace_id)
    return new_trace_id


def add_trace_id(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """structlog processor stamping each event with the current scrape trace ID."""
    event_dict["trace_id"] = get_trace_id()
    return event_dict


def configure_logging():
    """
    Route all pipeline logging through structlog.

    LOG_FORMAT=json emits one JSON object per event;
    anything else uses the coloured console renderer. Events below
    LOG_LEVEL are dropped before rendering.
    """
    processors = [
        structlog.contextvars.merge_contextvars,
        add_trace_id,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if config.LOG_FORMAT == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, config.LOG_LEVEL.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Bound structlog logger for a pipeline component or the API module."""
    return structlog.get_logger(name)


class LayerLogger:
    """
    Logger bound to one pipeline component (detector, extractor, gate).
    Keeps event names and fields consistent across components.
    """

    def __init__(self, layer_name: str):
        self.layer_name = layer_name
        self.logger = get_logger(layer_name)

    def log_decision(
        self,
        decision: str,
        reason: str,
        url: Optional[str] = None,
        **extra
    ):
        """Record a routing or acceptance decision (platform chosen, demo substituted)."""
        self.logger.info(
            "decision_made",
            layer=self.layer_name,
            decision=decision,
            reason=reason,
            url=url,
            **extra
        )

    def log_action(
        self,
        action: str,
        status: str = "started",
        **extra
    ):
        """Record a step of a scrape; the event name is action_<status>."""
        self.logger.info(
            f"action_{status}",
            layer=self.layer_name,
            action=action,
            **extra
        )

    def log_fallback(
        self,
        from_source: str,
        to_source: str,
        reason: str,
        **extra
    ):
        """Record a move to the next data source in a fallback chain."""
        self.logger.warning(
            "fallback_triggered",
            layer=self.layer_name,
            from_source=from_source,
            to_source=to_source,
            reason=reason,
            **extra
        )

    def log_error(
        self,
        error: str,
        error_type: str = "unknown",
        **extra
    ):
        """Record an unexpected failure; expected misses go through log_fallback."""
        self.logger.error(
            "error_occurred",
            layer=self.layer_name,
            error=error,
            error_type=error_type,
            **extra
        )

    def log_http_fetch(
        self,
        url: str,
        purpose: str,
        status_code: Optional[int],
        result: str,
        **extra
    ):
        """Log the outcome of one outbound fetch."""
        self.logger.info(
            "http_fetch",
            layer=self.layer_name,
            url=url,
            purpose=purpose,
            status_code=status_code,
            result=result,
            **extra
        )

    def log_extraction(
        self,
        platform: str,
        fields_present: List[str],
        fields_missing: List[str],
        **extra
    ):
        """Log which record fields an extractor managed to fill."""
        self.logger.info(
            "product_extracted",
            layer=self.layer_name,
            platform=platform,
            fields_present=fields_present,
            fields_missing=fields_missing,
            **extra
        )


# Configured once, before any extractor binds a logger
configure_logging()
