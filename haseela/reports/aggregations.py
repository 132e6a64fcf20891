"""
Report Aggregations

DESIGN DECISION: Every figure on screen is recomputed from the current
AppState snapshot. Nothing is cached or maintained incrementally: the
data is a few hundred tasks at most, and a recomputed view can never
disagree with the state it came from.

All functions are pure. Functions that depend on "this month" take an
optional `now` so tests can pin the clock.

RATIO POLICY: a zero denominator yields 0, never an exception or NaN.
Percentages round half up (12.5 -> 13).
"""

import math
from datetime import datetime
from typing import Optional

from haseela.models.ledger import AppState, Client, MonthlyGoal, Task, local_now
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


TREND_MONTHS = 6
DASHBOARD_TOP_CLIENTS = 4


# =============================================================================
# HELPERS
# =============================================================================

def current_period(now: Optional[datetime] = None) -> Period:
    now = now or local_now()
    return Period(month=now.month, year=now.year)


def _to_local(timestamp: datetime) -> datetime:
    """Interpret a timestamp in local time (naive values already are)."""
    if timestamp.tzinfo is None:
        return timestamp
    return timestamp.astimezone()


def _completed_in(task: Task, month: int, year: int) -> bool:
    if not task.is_completed or task.completed_at is None:
        return False
    completed = _to_local(task.completed_at)
    return completed.month == month and completed.year == year


def percent(part: float, whole: float) -> int:
    """Rounded percentage of part in whole; 0 when whole is not positive."""
    if whole <= 0:
        return 0
    return int(math.floor(part / whole * 100 + 0.5))


# =============================================================================
# MONTHLY FIGURES
# =============================================================================

def current_goal(state: AppState, now: Optional[datetime] = None) -> Optional[MonthlyGoal]:
    """The goal declared for this month, if any."""
    period = current_period(now)
    return state.find_goal(period.month, period.year)


def needs_goal_prompt(state: AppState, now: Optional[datetime] = None) -> bool:
    return current_goal(state, now) is None


def monthly_earnings(state: AppState, month: int, year: int) -> float:
    """
    Sum of prices of tasks completed in the given month.

    Only completed_at decides the month; when a task was created
    is irrelevant.
    """
    return sum(
        task.price
        for client in state.clients
        for task in client.tasks
        if _completed_in(task, month, year)
    )


def goal_progress_percentage(state: AppState, now: Optional[datetime] = None) -> int:
    """Progress towards this month's goal, capped at 100; 0 without a goal."""
    goal = current_goal(state, now)
    if goal is None:
        return 0
    earned = monthly_earnings(state, goal.month, goal.year)
    return min(percent(earned, goal.target_amount), 100)


def six_month_trend(state: AppState, now: Optional[datetime] = None) -> list[MonthlyPoint]:
    """Earnings for the six months ending with this one, oldest first."""
    period = current_period(now)
    points = []
    for offset in range(TREND_MONTHS - 1, -1, -1):
        month = period.shift(-offset)
        points.append(MonthlyPoint(
            period=month,
            earned=monthly_earnings(state, month.month, month.year),
        ))
    return points


def trend_scale(points: list[MonthlyPoint]) -> float:
    """Largest value in the series, floored at 1 so bar heights never divide by 0."""
    return max([point.earned for point in points] + [1.0])


def goal_history(state: AppState) -> list[PeriodRecord]:
    """Target vs. actual for every month that had a goal, newest first."""
    goals = sorted(state.goals, key=lambda g: (g.year, g.month), reverse=True)

    records = []
    for goal in goals:
        earned = monthly_earnings(state, goal.month, goal.year)
        records.append(PeriodRecord(
            period=Period(month=goal.month, year=goal.year),
            target_amount=goal.target_amount,
            earned=earned,
            achieved=earned >= goal.target_amount,
            percent=percent(earned, goal.target_amount),
        ))
    return records


# =============================================================================
# LIFETIME FIGURES
# =============================================================================

def client_earnings(client: Client) -> float:
    """Lifetime earnings of a client, regardless of completion month."""
    return sum(task.price for task in client.tasks if task.is_completed)


def clients_by_earnings(state: AppState) -> list[ClientEarnings]:
    """All clients ranked by lifetime earnings; ties keep insertion order."""
    ranked = [
        ClientEarnings(
            client_id=client.id,
            name=client.name,
            color=client.color,
            earned=client_earnings(client),
        )
        for client in state.clients
    ]
    # sorted() is stable
    return sorted(ranked, key=lambda entry: entry.earned, reverse=True)


def top_clients(state: AppState, limit: int = DASHBOARD_TOP_CLIENTS) -> list[ClientEarnings]:
    return clients_by_earnings(state)[:limit]


def lifetime_total(state: AppState) -> float:
    return sum(client_earnings(client) for client in state.clients)


def average_monthly_income(state: AppState) -> float:
    """
    Lifetime income divided by the number of declared goals.

    The divisor is the goal count, not the number of active months.
    """
    if not state.goals:
        return 0.0
    return lifetime_total(state) / len(state.goals)


def client_distribution(state: AppState) -> list[ClientShare]:
    """Clients that earned anything, ranked, with their share of the total."""
    total = lifetime_total(state)
    return [
        ClientShare(
            client_id=entry.client_id,
            name=entry.name,
            color=entry.color,
            earned=entry.earned,
            share_percent=percent(entry.earned, total),
        )
        for entry in clients_by_earnings(state)
        if entry.earned > 0
    ]


def top_contributor(state: AppState) -> Optional[TopContributor]:
    """The main income source, or None before any task is completed."""
    distribution = client_distribution(state)
    if not distribution:
        return None
    leader = distribution[0]
    return TopContributor(
        client_id=leader.client_id,
        name=leader.name,
        share_percent=leader.share_percent,
    )


def task_counts(state: AppState) -> tuple[int, int]:
    """(completed, open) task counts across all clients."""
    completed = sum(
        1 for client in state.clients for task in client.tasks if task.is_completed
    )
    total = sum(len(client.tasks) for client in state.clients)
    return completed, total - completed


def client_summaries(state: AppState) -> list[ClientSummary]:
    """Per-client progress in display (insertion) order."""
    summaries = []
    for client in state.clients:
        completed = sum(1 for task in client.tasks if task.is_completed)
        total = len(client.tasks)
        summaries.append(ClientSummary(
            client_id=client.id,
            name=client.name,
            color=client.color,
            completed_count=completed,
            total_count=total,
            completion_ratio=completed / total if total else 0.0,
            earned=client_earnings(client),
        ))
    return summaries


# =============================================================================
# PAGE VIEWS
# =============================================================================

def dashboard_summary(state: AppState, now: Optional[datetime] = None) -> DashboardSummary:
    period = current_period(now)
    goal = state.find_goal(period.month, period.year)
    completed, open_count = task_counts(state)

    return DashboardSummary(
        period=period,
        currency=state.currency,
        goal_amount=goal.target_amount if goal else None,
        month_earnings=monthly_earnings(state, period.month, period.year),
        progress_percent=goal_progress_percentage(state, now),
        completed_tasks=completed,
        open_tasks=open_count,
        top_clients=top_clients(state),
        needs_goal=goal is None,
    )


def report_summary(state: AppState, now: Optional[datetime] = None) -> ReportSummary:
    trend = six_month_trend(state, now)
    return ReportSummary(
        currency=state.currency,
        lifetime_total=lifetime_total(state),
        average_monthly=average_monthly_income(state),
        trend=trend,
        trend_scale=trend_scale(trend),
        distribution=client_distribution(state),
        top_contributor=top_contributor(state),
    )
