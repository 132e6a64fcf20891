"""
Tests for report aggregations.
"""

import pytest

from haseela.ledger import add_client, add_task, toggle_task
from haseela.models.ledger import AppState, Client, MonthlyGoal, Task
from haseela.reports import (
    average_monthly_income,
    client_distribution,
    client_earnings,
    client_summaries,
    clients_by_earnings,
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

from conftest import local_dt


def completed(task_id: str, price: float, year: int, month: int) -> Task:
    return Task(
        id=task_id,
        title=f"Task {task_id}",
        price=price,
        is_completed=True,
        created_at=local_dt(year, month, 1),
        completed_at=local_dt(year, month),
    )


class TestPercent:
    """Tests for the shared ratio helper."""

    def test_rounds_half_up(self):
        """Test .5 rounds up."""
        assert percent(1, 8) == 13  # 12.5
        assert percent(1, 3) == 33

    def test_zero_denominator(self):
        """Test a zero whole gives 0 instead of an error."""
        assert percent(10, 0) == 0


class TestMonthlyEarnings:
    """Tests for monthly earnings and goal progress."""

    def test_only_completed_in_month_count(self, sample_state):
        """Test only tasks completed in the month are summed."""
        assert monthly_earnings(sample_state, 3, 2024) == 300
        assert monthly_earnings(sample_state, 2, 2024) == 100
        assert monthly_earnings(sample_state, 1, 2024) == 0

    def test_same_month_other_year_excluded(self):
        """Test the year is part of the period."""
        state = AppState(clients=[Client(id="c", name="A", tasks=[
            completed("a", 50, 2023, 3),
            completed("b", 70, 2024, 3),
        ])])
        assert monthly_earnings(state, 3, 2024) == 70

    def test_acme_scenario(self, now):
        """Test one of two tasks completed counts in month, lifetime and share."""
        state = add_client(AppState.empty(), "Acme")
        client_id = state.clients[0].id
        state = add_task(state, client_id, "Big", 100, now=now)
        state = add_task(state, client_id, "Small", 50, now=now)
        big_id = state.clients[0].tasks[0].id
        state = toggle_task(state, client_id, big_id, now=now)

        assert monthly_earnings(state, now.month, now.year) == 100
        assert client_earnings(state.clients[0]) == 100
        assert client_distribution(state)[0].share_percent == 100

    def test_progress_capped_at_100(self, now):
        """Test overshooting the goal still reports 100."""
        state = AppState(
            clients=[Client(id="c", name="A", tasks=[completed("a", 900, 2024, 3)])],
            goals=[MonthlyGoal(month=3, year=2024, target_amount=300)],
        )
        assert goal_progress_percentage(state, now) == 100

    def test_progress_without_goal(self, sample_state):
        """Test no goal for the month gives 0."""
        assert goal_progress_percentage(sample_state, local_dt(2024, 5)) == 0

    def test_progress_with_zero_target(self, now):
        """Test a zero target (only possible in legacy data) gives 0."""
        goal = MonthlyGoal.model_construct(month=3, year=2024, target_amount=0)
        state = AppState.model_construct(clients=[], goals=[goal], currency="$")
        assert goal_progress_percentage(state, now) == 0

    def test_progress_rounded(self, sample_state, now):
        """Test progress is a rounded whole percentage."""
        assert goal_progress_percentage(sample_state, now) == 30

    def test_needs_goal_prompt(self, sample_state):
        """Test the prompt shows only for months without a goal."""
        assert needs_goal_prompt(sample_state, local_dt(2024, 3)) is False
        assert needs_goal_prompt(sample_state, local_dt(2024, 4)) is True


class TestTrend:
    """Tests for the six-month trend."""

    def test_trend_spans_year_boundary(self):
        """Test the window ending in February reaches back into the previous year."""
        state = AppState(clients=[Client(id="c", name="A", tasks=[
            completed("a", 10, 2023, 9),
            completed("b", 20, 2023, 12),
            completed("c", 30, 2024, 2),
        ])])
        trend = six_month_trend(state, local_dt(2024, 2))

        assert [p.period.label for p in trend] == [
            "2023-09", "2023-10", "2023-11", "2023-12", "2024-01", "2024-02",
        ]
        assert [p.earned for p in trend] == [10, 0, 0, 20, 0, 30]

    def test_trend_scale_floor(self):
        """Test an all-zero series scales to 1."""
        trend = six_month_trend(AppState.empty(), local_dt(2024, 3))
        assert trend_scale(trend) == 1.0

    def test_trend_scale_max(self, sample_state, now):
        """Test the scale is the largest monthly value."""
        assert trend_scale(six_month_trend(sample_state, now)) == 300


class TestGoalHistory:
    """Tests for the archive of goal periods."""

    def test_history_average_and_order(self):
        """Test two goal months: average over goals and newest first."""
        state = AppState(
            clients=[Client(id="c", name="A", tasks=[completed("a", 1000, 2024, 2)])],
            goals=[
                MonthlyGoal(month=1, year=2024, target_amount=500),
                MonthlyGoal(month=2, year=2024, target_amount=500),
            ],
        )

        assert average_monthly_income(state) == 500
        history = goal_history(state)
        assert [r.period.month for r in history] == [2, 1]
        assert history[0].achieved is True
        assert history[0].percent == 200
        assert history[1].achieved is False
        assert history[1].percent == 0

    def test_history_sorts_by_year_first(self):
        """Test December of last year comes after January of this year."""
        state = AppState(goals=[
            MonthlyGoal(month=12, year=2023, target_amount=1),
            MonthlyGoal(month=1, year=2024, target_amount=1),
        ])
        assert [r.period.label for r in goal_history(state)] == ["2024-01", "2023-12"]

    def test_average_without_goals(self, sample_state):
        """Test no goals gives an average of 0."""
        state = sample_state.model_copy(update={"goals": []})
        assert average_monthly_income(state) == 0


class TestClientRankings:
    """Tests for per-client figures."""

    def test_ranking_descending(self, sample_state):
        """Test clients are ordered by lifetime earnings."""
        assert [e.name for e in clients_by_earnings(sample_state)] == ["Acme", "Globex"]

    def test_ranking_ties_keep_insertion_order(self):
        """Test equal earners stay in encounter order."""
        state = AppState(clients=[
            Client(id="a", name="First", tasks=[completed("1", 50, 2024, 1)]),
            Client(id="b", name="Second", tasks=[completed("2", 50, 2024, 1)]),
            Client(id="c", name="Third", tasks=[completed("3", 80, 2024, 1)]),
        ])
        assert [e.name for e in clients_by_earnings(state)] == ["Third", "First", "Second"]

    def test_top_clients_limit(self):
        """Test the dashboard shows four clients at most."""
        state = AppState(clients=[Client(id=str(i), name=f"C{i}") for i in range(6)])
        assert len(top_clients(state)) == 4

    def test_distribution_skips_zero_earners(self, sample_state):
        """Test clients that earned nothing are left out."""
        state = add_client(sample_state, "Idle")
        names = [share.name for share in client_distribution(state)]
        assert names == ["Acme", "Globex"]

    def test_distribution_shares(self, sample_state):
        """Test shares are rounded percentages of the lifetime total."""
        shares = [share.share_percent for share in client_distribution(sample_state)]
        assert shares == [75, 25]

    def test_top_contributor(self, sample_state):
        """Test the leader and their share."""
        leader = top_contributor(sample_state)
        assert leader.name == "Acme"
        assert leader.share_percent == 75

    def test_top_contributor_none_without_income(self):
        """Test no contributor before any task is completed."""
        assert top_contributor(AppState.empty()) is None

    def test_client_summaries(self, sample_state):
        """Test per-client completion counts and ratios."""
        summaries = client_summaries(sample_state)
        assert summaries[0].completed_count == 1
        assert summaries[0].total_count == 2
        assert summaries[0].completion_ratio == 0.5

    def test_client_summary_without_tasks(self):
        """Test a client with no tasks has a 0 ratio."""
        state = add_client(AppState.empty(), "New")
        assert client_summaries(state)[0].completion_ratio == 0.0

    def test_task_counts(self, sample_state):
        """Test completed and open task counts."""
        assert task_counts(sample_state) == (2, 1)


class TestPageSummaries:
    """Tests for the dashboard and report views."""

    def test_dashboard_summary(self, sample_state, now):
        """Test the dashboard view for a month with a goal."""
        summary = dashboard_summary(sample_state, now)
        assert summary.goal_amount == 1000
        assert summary.month_earnings == 300
        assert summary.progress_percent == 30
        assert summary.needs_goal is False
        assert summary.completed_tasks == 2
        assert summary.open_tasks == 1

    def test_dashboard_summary_without_goal(self, sample_state):
        """Test the dashboard asks for a goal in a new month."""
        summary = dashboard_summary(sample_state, local_dt(2024, 6))
        assert summary.needs_goal is True
        assert summary.goal_amount is None
        assert summary.progress_percent == 0

    def test_report_summary(self, sample_state, now):
        """Test the report view totals."""
        summary = report_summary(sample_state, now)
        assert summary.lifetime_total == 400
        assert summary.average_monthly == 200
        assert len(summary.trend) == 6
        assert summary.top_contributor.name == "Acme"

    def test_report_summary_empty_state(self, now):
        """Test an empty state reports zeros without errors."""
        summary = report_summary(AppState.empty(), now)
        assert summary.lifetime_total == 0
        assert summary.average_monthly == 0
        assert summary.distribution == []
        assert summary.trend_scale == 1.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
