"""
Structured logging for persona-audit.

Use get_logger(__name__) in every module; bind run context with
structlog.contextvars.
"""

from persona_audit.audit_logging.logger import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
