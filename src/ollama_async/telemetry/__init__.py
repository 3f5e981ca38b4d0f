"""Telemetry utilities (structured request logging)."""

from ollama_async.telemetry.structured_logging import get_request_logger, log_request_event

__all__ = ["get_request_logger", "log_request_event"]
