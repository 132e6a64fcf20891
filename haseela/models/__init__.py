"""
Data Models Package

This package contains all Pydantic models used in Haseela.
All data flowing through the system must conform to these schemas.
"""

from haseela.models.ledger import (
    AppState,
    Client,
    ClientColor,
    MonthlyGoal,
    Task,
    local_now,
    new_id,
    random_color,
)
from haseela.models.report import (
    ClientEarnings,
    ClientShare,
    ClientSummary,
    DashboardSummary,
    MonthlyPoint,
    Period,
    PeriodRecord,
    ReportSummary,
    TopContributor,
)
from haseela.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "AppState",
    "Client",
    "ClientColor",
    "MonthlyGoal",
    "Task",
    "local_now",
    "new_id",
    "random_color",
    # Report models
    "ClientEarnings",
    "ClientShare",
    "ClientSummary",
    "DashboardSummary",
    "MonthlyPoint",
    "Period",
    "PeriodRecord",
    "ReportSummary",
    "TopContributor",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
