"""Allocation aggregation and per-day overallocation detection."""
import logging
from datetime import date

from calendar_utils import iter_working_days, overlap, working_days
from capacity import default_profile, resolve_active_profile, resolve_capacity
from config import AllocationCountPolicy, EngineSettings
from models import ResourceAllocation
from repository import WorkloadRepository
from schemas import AllocationConflict, DateRange, ProjectResourceNeed, WorkloadCalculation

logger = logging.getLogger(__name__)


def counted_hours(
    allocation: ResourceAllocation,
    window: DateRange,
    policy: AllocationCountPolicy = AllocationCountPolicy.COUNT_FULL,
) -> float:
    """Hours of allocation charged to window under policy.

    COUNT_FULL charges every overlapping allocation in full, however little
    of its span falls inside the window. PRORATE_OVERLAP charges the share of
    its working days that fall inside the window.
    """
    if policy == AllocationCountPolicy.COUNT_FULL:
        return allocation.allocated_hours

    if allocation.end_date < allocation.start_date:
        logger.warning(
            f"Allocation {allocation.id} for user {allocation.user_id} ends {allocation.end_date} "
            f"before it starts {allocation.start_date}, counting 0h"
        )
        return 0.0
    clipped = overlap(DateRange(start=allocation.start_date, end=allocation.end_date), window)
    if clipped is None:
        return 0.0
    span_days = working_days(allocation.start_date, allocation.end_date)
    if span_days == 0:
        return 0.0
    return allocation.allocated_hours * working_days(clipped.start, clipped.end) / span_days


def total_allocated_hours(
    allocations: list[ResourceAllocation],
    window: DateRange,
    policy: AllocationCountPolicy = AllocationCountPolicy.COUNT_FULL,
) -> float:
    return sum(counted_hours(a, window, policy) for a in allocations)


def daily_rate(allocation: ResourceAllocation) -> float:
    """Spread allocated_hours evenly over the working days of its span."""
    span_days = working_days(allocation.start_date, allocation.end_date)
    if span_days == 0:
        return 0.0
    return allocation.allocated_hours / span_days


def utilization_percentage(allocated: float, available: float) -> float:
    if available <= 0:
        return 0.0
    return (allocated / available) * 100


def overallocation_hours(allocated: float, available: float) -> float:
    return max(0.0, allocated - available)


def find_allocation_conflicts(
    repo: WorkloadRepository,
    user_id: str,
    start: date,
    end: date,
    settings: EngineSettings | None = None,
    allocations: list[ResourceAllocation] | None = None,
) -> list[AllocationConflict]:
    """Scan each working day of [start, end] for allocations above that day's capacity.

    Cost is days x overlapping allocations, which stays small for the
    week/month windows dashboards ask for.
    """
    settings = settings or EngineSettings()
    if allocations is None:
        allocations = repo.get_active_allocations(start, end, user_id=user_id)
    if not allocations:
        return []

    profiles = repo.list_capacity_profiles(user_id)
    fallback = default_profile(user_id, settings)
    rates = {id(a): daily_rate(a) for a in allocations}

    conflicts = []
    for day in iter_working_days(start, end):
        day_allocations = [a for a in allocations if a.start_date <= day <= a.end_date]
        if not day_allocations:
            continue

        profile = resolve_active_profile(profiles, day) or fallback
        day_capacity = profile.hours_per_day
        day_total = sum(rates[id(a)] for a in day_allocations)

        if day_total > day_capacity:
            project_ids = list(dict.fromkeys(a.project_id for a in day_allocations if a.project_id))
            conflicts.append(
                AllocationConflict(
                    user_id=user_id,
                    conflict_date=day,
                    total_allocated_hours=day_total,
                    available_hours=day_capacity,
                    overallocation_hours=day_total - day_capacity,
                    conflicting_project_ids=project_ids,
                )
            )

    if conflicts:
        logger.info(f"Found {len(conflicts)} overallocated days for user {user_id} between {start} and {end}")
    return conflicts


def calculate_user_workload(
    repo: WorkloadRepository,
    user_id: str,
    start: date,
    end: date,
    settings: EngineSettings | None = None,
    include_conflicts: bool = True,
) -> WorkloadCalculation:
    """Capacity, committed hours and overcommitment for user_id in [start, end]."""
    settings = settings or EngineSettings()
    window = DateRange(start=start, end=end)

    capacity = resolve_capacity(repo, user_id, start, end, settings)

    allocations = repo.get_active_allocations(start, end, user_id=user_id)
    allocated = total_allocated_hours(allocations, window, settings.allocation_policy)
    available = capacity.available_hours

    overallocated_by = overallocation_hours(allocated, available)
    project_ids = {a.project_id for a in allocations if a.project_id}

    actual_worked = repo.sum_time_entry_hours(user_id, start, end)
    active_tasks = repo.get_active_task_count(user_id, settings.active_task_statuses)

    conflicts = []
    if include_conflicts:
        conflicts = find_allocation_conflicts(repo, user_id, start, end, settings, allocations=allocations)

    return WorkloadCalculation(
        user_id=user_id,
        window=window,
        total_capacity_hours=capacity.total_capacity_hours,
        total_allocated_hours=allocated,
        actual_worked_hours=actual_worked,
        available_hours=available,
        unavailable_hours=capacity.unavailable_hours,
        utilization_percentage=utilization_percentage(allocated, available),
        overallocation_hours=overallocated_by,
        is_overallocated=overallocated_by > 0,
        active_projects_count=len(project_ids),
        active_tasks_count=active_tasks,
        conflicting_allocations=conflicts,
    )


def calculate_project_resource_need(
    repo: WorkloadRepository,
    project_id: str,
    required_skills: list[str],
    estimated_hours: float,
    start: date,
    end: date,
    priority: str = "medium",
    settings: EngineSettings | None = None,
) -> ProjectResourceNeed:
    """How far the project's current allocations fall short of its estimate."""
    settings = settings or EngineSettings()
    window = DateRange(start=start, end=end)

    allocations = repo.get_active_allocations(start, end, project_id=project_id)
    current = total_allocated_hours(allocations, window, settings.allocation_policy)

    return ProjectResourceNeed(
        project_id=project_id,
        required_skills=list(required_skills),
        estimated_hours=estimated_hours,
        priority=priority,
        window=window,
        current_allocation=current,
        shortfall_hours=max(0.0, estimated_hours - current),
        allocated_user_ids=list(dict.fromkeys(a.user_id for a in allocations)),
    )
