"""
Audit Logger

DESIGN DECISION: Every state transition and sync decision is logged.
This provides:
1. Traceability of how the current state was reached
2. Visibility into swallowed remote failures
3. A record of data that was discarded or replaced

The audit logger never raises: a broken log sink must not break a
mutation that has already been applied.
"""

import logging
from typing import Optional

import structlog

from haseela.config import get_settings
from haseela.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def configure_logging(
    log_format: Optional[str] = None,
    log_level: Optional[str] = None,
) -> None:
    """
    Configure structlog on top of the standard library logger.

    Defaults come from AppSettings: "json" renders one JSON object per
    line, "console" renders human-readable lines.
    """
    app_settings = get_settings().app
    log_format = log_format or app_settings.log_format
    log_level = log_level or app_settings.log_level

    shared_processors = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


class AuditLogger:
    """
    Central audit logging service.

    Writes every AuditEvent as one structured log line, at the level
    matching its severity.
    """

    def __init__(self, logger_name: str = "haseela.audit"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the log sink failed.
        """
        log_dict = event.to_log_dict()
        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            logging.getLogger(__name__).exception(
                "Failed to write audit event %s", log_dict["event_id"]
            )
            return False
        return True

    def log_mutation_rejected(self, operation: str, reasons: list[str]) -> None:
        self.log(AuditEventBuilder.mutation_rejected(operation, reasons))

    def log_state_loaded(self, source: str, client_count: int, goal_count: int) -> None:
        self.log(AuditEventBuilder.state_loaded(source, client_count, goal_count))

    def log_local_data_migrated(self, user_id: str) -> None:
        self.log(AuditEventBuilder.local_data_migrated(user_id))

    def log_local_cache_corrupted(self, error_message: str) -> None:
        self.log(AuditEventBuilder.local_cache_corrupted(error_message))

    def log_local_save_failed(self, error_message: str) -> None:
        self.log(AuditEventBuilder.local_save_failed(error_message))

    def log_remote_sync_failed(self, operation: str, error_message: str) -> None:
        self.log(AuditEventBuilder.remote_sync_failed(operation, error_message))

    def log_state_exported(self, filename: str) -> None:
        self.log(AuditEventBuilder.state_exported(filename))

    def log_document_imported(self, client_count: int, goal_count: int) -> None:
        self.log(AuditEventBuilder.document_imported(client_count, goal_count))

    def log_document_rejected(self, error_message: str) -> None:
        self.log(AuditEventBuilder.document_rejected(error_message))

    def log_signed_in(self, user_id: str) -> None:
        self.log(AuditEventBuilder.signed_in(user_id))

    def log_signed_out(self, user_id: Optional[str]) -> None:
        self.log(AuditEventBuilder.signed_out(user_id))

    def log_session_ended(self, user_id: Optional[str]) -> None:
        self.log(AuditEventBuilder.session_ended(user_id))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.log(AuditEventBuilder.system_error(error_type, error_message, details))
