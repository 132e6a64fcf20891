"""
Report Models for Haseela

Read-only views derived from an AppState snapshot. Nothing here is
persisted; every view is rebuilt from state whenever it is shown.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Period(BaseModel):
    """A calendar month, identified by (month, year)."""
    model_config = ConfigDict(frozen=True)

    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1)

    def shift(self, months: int) -> 'Period':
        """
        Move by a number of months (negative goes back).

        Carries into the year, so January shifted by -1 is December
        of the previous year.
        """
        index = self.year * 12 + (self.month - 1) + months
        return Period(month=index % 12 + 1, year=index // 12)

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


class ClientEarnings(BaseModel):
    """Lifetime earnings of one client (completed tasks only)."""

    client_id: str
    name: str
    color: str
    earned: float = Field(ge=0)


class ClientShare(BaseModel):
    """One row of the income distribution report."""

    client_id: str
    name: str
    color: str
    earned: float = Field(ge=0)
    share_percent: int = Field(
        ge=0,
        le=100,
        description="Rounded share of lifetime income"
    )


class ClientSummary(BaseModel):
    """Per-client progress shown in the client list."""

    client_id: str
    name: str
    color: str
    completed_count: int = Field(ge=0)
    total_count: int = Field(ge=0)
    completion_ratio: float = Field(
        ge=0.0,
        le=1.0,
        description="completed / total, 0 when the client has no tasks"
    )
    earned: float = Field(ge=0)


class MonthlyPoint(BaseModel):
    """Earnings for one month of the trailing series."""

    period: Period
    earned: float = Field(ge=0)


class PeriodRecord(BaseModel):
    """
    Archived target-vs-actual for a month that had a goal.

    percent is NOT capped here: the archive shows 150% when a target
    was overshot, while goal progress on the dashboard stops at 100.
    """

    period: Period
    target_amount: float
    earned: float = Field(ge=0)
    achieved: bool
    percent: int = Field(ge=0)


class TopContributor(BaseModel):
    """The client bringing in the largest share of lifetime income."""

    client_id: str
    name: str
    share_percent: int = Field(ge=0, le=100)


class DashboardSummary(BaseModel):
    """Everything the dashboard shows for the current month."""

    period: Period
    currency: str
    goal_amount: Optional[float] = None
    month_earnings: float = Field(ge=0)
    progress_percent: int = Field(ge=0, le=100)
    completed_tasks: int = Field(ge=0)
    open_tasks: int = Field(ge=0)
    top_clients: list[ClientEarnings] = Field(default_factory=list)
    needs_goal: bool


class ReportSummary(BaseModel):
    """Everything the reports page shows."""

    currency: str
    lifetime_total: float = Field(ge=0)
    average_monthly: float = Field(ge=0)
    trend: list[MonthlyPoint] = Field(default_factory=list)
    trend_scale: float = Field(
        ge=1,
        description="Largest monthly value in the trend, at least 1"
    )
    distribution: list[ClientShare] = Field(default_factory=list)
    top_contributor: Optional[TopContributor] = None
