"""Audit logging package."""

from haseela.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
