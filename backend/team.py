"""Team-wide utilization roll-up."""
import logging
from datetime import date

from allocation import calculate_user_workload
from batch import run_for_users
from config import EngineSettings
from repository import WorkloadRepository
from schemas import MemberUtilization, TeamUtilization, UtilizationStatus, WorkloadCalculation

logger = logging.getLogger(__name__)


def classify_utilization(utilization: float, settings: EngineSettings | None = None) -> UtilizationStatus:
    """Over 100% is overallocated, under 70% underutilized, both bounds inclusive for optimal."""
    settings = settings or EngineSettings()
    if utilization > settings.overallocated_threshold:
        return UtilizationStatus.OVERALLOCATED
    if utilization < settings.underutilized_threshold:
        return UtilizationStatus.UNDERUTILIZED
    return UtilizationStatus.OPTIMAL


def calculate_team_workloads(
    repo: WorkloadRepository,
    start: date,
    end: date,
    user_ids: list[str] | None = None,
    settings: EngineSettings | None = None,
    include_conflicts: bool = True,
) -> list[WorkloadCalculation]:
    """Workload of every listed user, or of all active users when none are given."""
    settings = settings or EngineSettings()
    if user_ids is None:
        user_ids = repo.list_active_users()

    return run_for_users(
        "team_workloads",
        list(user_ids),
        lambda user_id: calculate_user_workload(
            repo, user_id, start, end, settings, include_conflicts=include_conflicts
        ),
        max_workers=settings.max_workers,
        timeout_seconds=settings.batch_timeout_seconds,
    )


def summarize_team(workloads: list[WorkloadCalculation], settings: EngineSettings | None = None) -> TeamUtilization:
    settings = settings or EngineSettings()

    total_capacity = sum(w.total_capacity_hours for w in workloads)
    total_allocated = sum(w.total_allocated_hours for w in workloads)
    # Capacity weighted, not a mean of the per-member percentages
    average = (total_allocated / total_capacity) * 100 if total_capacity > 0 else 0.0

    members = [
        MemberUtilization(
            user_id=w.user_id,
            utilization_percentage=w.utilization_percentage,
            status=classify_utilization(w.utilization_percentage, settings),
        )
        for w in workloads
    ]

    return TeamUtilization(
        total_team_members=len(workloads),
        average_utilization=average,
        overallocated_members=sum(1 for m in members if m.status == UtilizationStatus.OVERALLOCATED),
        underutilized_members=sum(1 for m in members if m.status == UtilizationStatus.UNDERUTILIZED),
        optimal_utilization_members=sum(1 for m in members if m.status == UtilizationStatus.OPTIMAL),
        total_capacity_hours=total_capacity,
        total_allocated_hours=total_allocated,
        members=members,
    )


def calculate_team_utilization(
    repo: WorkloadRepository,
    start: date,
    end: date,
    user_ids: list[str] | None = None,
    settings: EngineSettings | None = None,
) -> TeamUtilization:
    settings = settings or EngineSettings()
    workloads = calculate_team_workloads(repo, start, end, user_ids, settings, include_conflicts=False)
    summary = summarize_team(workloads, settings)
    logger.info(
        f"Team utilization {start} to {end}: {summary.total_team_members} members, "
        f"average {summary.average_utilization:.1f}%, {summary.overallocated_members} overallocated"
    )
    return summary
