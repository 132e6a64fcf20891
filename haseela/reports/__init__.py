"""Report aggregation package."""

from haseela.reports.aggregations import (
    average_monthly_income,
    client_distribution,
    client_earnings,
    client_summaries,
    clients_by_earnings,
    current_goal,
    current_period,
    dashboard_summary,
    goal_history,
    goal_progress_percentage,
    lifetime_total,
    monthly_earnings,
    needs_goal_prompt,
    percent,
    report_summary,
    six_month_trend,
    task_counts,
    top_clients,
    top_contributor,
    trend_scale,
)

__all__ = [
    "average_monthly_income",
    "client_distribution",
    "client_earnings",
    "client_summaries",
    "clients_by_earnings",
    "current_goal",
    "current_period",
    "dashboard_summary",
    "goal_history",
    "goal_progress_percentage",
    "lifetime_total",
    "monthly_earnings",
    "needs_goal_prompt",
    "percent",
    "report_summary",
    "six_month_trend",
    "task_counts",
    "top_clients",
    "top_contributor",
    "trend_scale",
]
