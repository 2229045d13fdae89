"""Tests for allocation aggregation, conflict detection and project needs."""
from datetime import date

import pytest

from conftest import WEEK_END, WEEK_START, allocation
from allocation import (
    calculate_project_resource_need,
    calculate_user_workload,
    counted_hours,
    daily_rate,
    find_allocation_conflicts,
    overallocation_hours,
    utilization_percentage,
)
from config import AllocationCountPolicy, EngineSettings
from models import AvailabilityPeriod, CapacityProfile, Task, TimeEntry
from schemas import DateRange


def test_single_allocation_fills_week(repo, add_rows, standard_user):
    """40h over a 5-day week at 8h/day is exactly full."""
    add_rows(allocation(standard_user, 40, project_id="p1"))

    workload = calculate_user_workload(repo, standard_user, WEEK_START, WEEK_END)
    assert workload.total_capacity_hours == 40
    assert workload.available_hours == 40
    assert workload.total_allocated_hours == 40
    assert workload.utilization_percentage == pytest.approx(100)
    assert workload.overallocation_hours == 0
    assert workload.is_overallocated is False
    assert workload.conflicting_allocations == []


def test_second_allocation_overallocates(repo, add_rows, standard_user):
    add_rows(
        allocation(standard_user, 40, project_id="p1"),
        allocation(standard_user, 10, project_id="p2"),
    )

    workload = calculate_user_workload(repo, standard_user, WEEK_START, WEEK_END)
    assert workload.total_allocated_hours == 50
    assert workload.overallocation_hours == 10
    assert workload.utilization_percentage == pytest.approx(125)
    assert workload.is_overallocated is True
    assert workload.active_projects_count == 2


def test_vacation_shrinks_available_hours(repo, add_rows, standard_user):
    add_rows(
        allocation(standard_user, 40, project_id="p1"),
        AvailabilityPeriod(
            user_id=standard_user,
            type="vacation",
            status="approved",
            start_date=date(2024, 1, 15),
            end_date=date(2024, 1, 16),
        ),
    )

    workload = calculate_user_workload(repo, standard_user, WEEK_START, WEEK_END)
    assert workload.unavailable_hours == 16
    assert workload.available_hours == 24
    assert workload.overallocation_hours == 16
    assert workload.is_overallocated is True


def test_no_available_hours_gives_zero_utilization(repo, add_rows, standard_user):
    add_rows(
        allocation(standard_user, 40),
        AvailabilityPeriod(
            user_id=standard_user,
            type="training",
            status="approved",
            start_date=WEEK_START,
            end_date=WEEK_END,
        ),
    )

    workload = calculate_user_workload(repo, standard_user, WEEK_START, WEEK_END)
    assert workload.available_hours == 0
    assert workload.utilization_percentage == 0
    assert workload.overallocation_hours == 40


def test_inactive_allocations_do_not_count(repo, add_rows, standard_user):
    add_rows(
        allocation(standard_user, 40, status="completed"),
        allocation(standard_user, 40, status="cancelled"),
        allocation(standard_user, 8, status="active"),
    )

    workload = calculate_user_workload(repo, standard_user, WEEK_START, WEEK_END)
    assert workload.total_allocated_hours == 8


def test_partial_overlap_counted_in_full_by_default(repo, add_rows, standard_user):
    """An 80h two-week allocation charges all 80h to a one-week window."""
    add_rows(allocation(standard_user, 80, end=date(2024, 1, 26)))

    workload = calculate_user_workload(repo, standard_user, WEEK_START, WEEK_END)
    assert workload.total_allocated_hours == 80


def test_partial_overlap_prorated_by_policy(repo, add_rows, standard_user):
    add_rows(allocation(standard_user, 80, end=date(2024, 1, 26)))
    settings = EngineSettings(allocation_policy=AllocationCountPolicy.PRORATE_OVERLAP)

    workload = calculate_user_workload(repo, standard_user, WEEK_START, WEEK_END, settings)
    assert workload.total_allocated_hours == pytest.approx(40)


def test_reversed_allocation_prorates_to_zero(repo, add_rows, standard_user):
    add_rows(
        allocation(standard_user, 40, project_id="p1"),
        allocation(standard_user, 16, start=date(2024, 1, 17), end=date(2024, 1, 16), project_id="p2"),
    )
    settings = EngineSettings(allocation_policy=AllocationCountPolicy.PRORATE_OVERLAP)

    workload = calculate_user_workload(repo, standard_user, WEEK_START, WEEK_END, settings)
    assert workload.total_allocated_hours == pytest.approx(40)
    assert workload.conflicting_allocations == []


def test_actual_hours_projects_and_tasks(repo, add_rows, standard_user):
    add_rows(
        allocation(standard_user, 10, project_id="p1"),
        allocation(standard_user, 10, project_id="p1"),
        allocation(standard_user, 5),
        TimeEntry(user_id=standard_user, work_date=date(2024, 1, 15), hours=8),
        TimeEntry(user_id=standard_user, work_date=date(2024, 1, 16), hours=4.5),
        TimeEntry(user_id=standard_user, work_date=date(2024, 1, 22), hours=8),
        TimeEntry(user_id="someone-else", work_date=date(2024, 1, 15), hours=8),
        Task(title="a", assigned_to=standard_user, status="todo"),
        Task(title="b", assigned_to=standard_user, status="in_progress"),
        Task(title="c", assigned_to=standard_user, status="done"),
        Task(title="d", assigned_to="someone-else", status="todo"),
    )

    workload = calculate_user_workload(repo, standard_user, WEEK_START, WEEK_END)
    assert workload.actual_worked_hours == pytest.approx(12.5)
    assert workload.active_projects_count == 1
    assert workload.active_tasks_count == 2


def test_user_without_any_data(repo):
    workload = calculate_user_workload(repo, "ghost", WEEK_START, WEEK_END)
    assert workload.total_allocated_hours == 0
    assert workload.actual_worked_hours == 0
    assert workload.active_tasks_count == 0
    assert workload.utilization_percentage == 0


class TestFormulas:
    @pytest.mark.parametrize(
        "allocated,available,expected",
        [(50, 40, 10), (30, 40, 0), (40, 40, 0), (10, -20, 30), (0, 0, 0)],
    )
    def test_overallocation_hours(self, allocated, available, expected):
        assert overallocation_hours(allocated, available) == expected

    @pytest.mark.parametrize("available", [0, -1, -40])
    def test_utilization_guarded_for_non_positive_available(self, available):
        assert utilization_percentage(25, available) == 0

    def test_daily_rate_spreads_over_working_days(self):
        assert daily_rate(allocation("u", 50, start=date(2024, 1, 15), end=date(2024, 1, 21))) == 10

    def test_weekend_only_allocation_has_no_rate(self):
        assert daily_rate(allocation("u", 16, start=date(2024, 1, 20), end=date(2024, 1, 21))) == 0

    def test_prorated_hours_for_disjoint_window(self):
        window = DateRange(start=date(2024, 2, 1), end=date(2024, 2, 2))
        assert counted_hours(allocation("u", 40), window, AllocationCountPolicy.PRORATE_OVERLAP) == 0


class TestConflicts:
    def test_each_overbooked_day_is_reported(self, repo, add_rows, standard_user):
        add_rows(
            allocation(standard_user, 40, project_id="p1"),
            allocation(standard_user, 10, project_id="p2"),
        )

        conflicts = find_allocation_conflicts(repo, standard_user, WEEK_START, WEEK_END)
        assert [c.conflict_date for c in conflicts] == [
            date(2024, 1, 15),
            date(2024, 1, 16),
            date(2024, 1, 17),
            date(2024, 1, 18),
            date(2024, 1, 19),
        ]
        first = conflicts[0]
        assert first.total_allocated_hours == pytest.approx(10)
        assert first.available_hours == 8
        assert first.overallocation_hours == pytest.approx(2)
        assert first.conflicting_project_ids == ["p1", "p2"]

    def test_exactly_full_day_is_not_a_conflict(self, repo, add_rows, standard_user):
        add_rows(allocation(standard_user, 40))
        assert find_allocation_conflicts(repo, standard_user, WEEK_START, WEEK_END) == []

    def test_only_overlapping_days_conflict(self, repo, add_rows, standard_user):
        """A 2-day 12h allocation on top of a full week only clashes on its own days."""
        add_rows(
            allocation(standard_user, 40, project_id="p1"),
            allocation(standard_user, 12, start=date(2024, 1, 18), end=date(2024, 1, 19), project_id="p2"),
        )

        conflicts = find_allocation_conflicts(repo, standard_user, WEEK_START, WEEK_END)
        assert [c.conflict_date for c in conflicts] == [date(2024, 1, 18), date(2024, 1, 19)]
        assert conflicts[0].total_allocated_hours == pytest.approx(14)

    def test_day_capacity_follows_profile_timeline(self, repo, add_rows):
        add_rows(
            CapacityProfile(user_id="u3", hours_per_day=8, effective_from=date(2024, 1, 1), effective_to=date(2024, 1, 16)),
            CapacityProfile(user_id="u3", hours_per_day=4, effective_from=date(2024, 1, 17)),
            allocation("u3", 30, project_id="p1"),
        )

        conflicts = find_allocation_conflicts(repo, "u3", WEEK_START, WEEK_END)
        assert [c.conflict_date for c in conflicts] == [date(2024, 1, 17), date(2024, 1, 18), date(2024, 1, 19)]
        assert all(c.available_hours == 4 for c in conflicts)
        assert all(c.overallocation_hours == pytest.approx(2) for c in conflicts)

    def test_weekends_are_skipped(self, repo, add_rows, standard_user):
        add_rows(allocation(standard_user, 30, start=date(2024, 1, 20), end=date(2024, 1, 21)))

        conflicts = find_allocation_conflicts(repo, standard_user, date(2024, 1, 15), date(2024, 1, 21))
        assert conflicts == []

    def test_conflicts_included_in_workload(self, repo, add_rows, standard_user):
        add_rows(allocation(standard_user, 60, project_id="p1"))

        workload = calculate_user_workload(repo, standard_user, WEEK_START, WEEK_END)
        assert len(workload.conflicting_allocations) == 5

        skipped = calculate_user_workload(repo, standard_user, WEEK_START, WEEK_END, include_conflicts=False)
        assert skipped.conflicting_allocations == []


class TestProjectResourceNeed:
    def test_shortfall_against_estimate(self, repo, add_rows):
        add_rows(
            allocation("u1", 30, project_id="p1"),
            allocation("u2", 20, project_id="p1"),
            allocation("u2", 20, project_id="p1", status="cancelled"),
            allocation("u3", 15, project_id="p2"),
        )

        need = calculate_project_resource_need(repo, "p1", ["python"], 80, WEEK_START, WEEK_END, priority="high")
        assert need.current_allocation == 50
        assert need.shortfall_hours == 30
        assert need.allocated_user_ids == ["u1", "u2"]
        assert need.priority == "high"

    def test_fully_staffed_project_has_no_shortfall(self, repo, add_rows):
        add_rows(allocation("u1", 100, project_id="p1"))

        need = calculate_project_resource_need(repo, "p1", [], 80, WEEK_START, WEEK_END)
        assert need.shortfall_hours == 0
