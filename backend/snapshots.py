"""Weekly workload snapshots for trend reporting."""
import logging
from datetime import date

from allocation import calculate_user_workload
from batch import run_for_users
from calendar_utils import week_bounds
from config import EngineSettings
from models import WorkloadSnapshot
from repository import WorkloadRepository
from schemas import WorkloadCalculation

logger = logging.getLogger(__name__)


def snapshot_from_workload(user_id: str, snapshot_date: date, workload: WorkloadCalculation) -> WorkloadSnapshot:
    return WorkloadSnapshot(
        user_id=user_id,
        snapshot_date=snapshot_date,
        total_allocated_hours=workload.total_allocated_hours,
        actual_worked_hours=workload.actual_worked_hours,
        available_hours=workload.available_hours,
        utilization_percentage=workload.utilization_percentage,
        overallocation_hours=workload.overallocation_hours,
        active_projects_count=workload.active_projects_count,
        active_tasks_count=workload.active_tasks_count,
    )


def create_workload_snapshot(
    repo: WorkloadRepository,
    user_id: str,
    snapshot_date: date,
    settings: EngineSettings | None = None,
) -> WorkloadSnapshot:
    """Record user_id's workload for the Sunday-Saturday week containing snapshot_date.

    With snapshot_upsert on, running twice for the same date rewrites that
    day's row; with it off, each run appends another row.
    """
    settings = settings or EngineSettings()
    week = week_bounds(snapshot_date)

    workload = calculate_user_workload(repo, user_id, week.start, week.end, settings, include_conflicts=False)
    snapshot = snapshot_from_workload(user_id, snapshot_date, workload)

    if settings.snapshot_upsert:
        return repo.upsert_workload_snapshot(snapshot)
    return repo.insert_workload_snapshot(snapshot)


def generate_team_workload_snapshots(
    repo: WorkloadRepository,
    snapshot_date: date | None = None,
    settings: EngineSettings | None = None,
) -> list[WorkloadSnapshot]:
    """Snapshot every active user. Meant to be run by a scheduler."""
    settings = settings or EngineSettings()
    snapshot_date = snapshot_date or date.today()
    user_ids = repo.list_active_users()

    logger.info(f"Generating workload snapshots for {len(user_ids)} users on {snapshot_date}")
    return run_for_users(
        "workload_snapshots",
        user_ids,
        lambda user_id: create_workload_snapshot(repo, user_id, snapshot_date, settings),
        max_workers=settings.max_workers,
        timeout_seconds=settings.batch_timeout_seconds,
    )


def list_workload_snapshots(
    repo: WorkloadRepository,
    user_id: str | None = None,
    start: date | None = None,
    end: date | None = None,
) -> list[WorkloadSnapshot]:
    """Snapshot history, newest first. A date filter applies only when both bounds are given."""
    if (start is None) != (end is None):
        logger.warning(f"Ignoring one-sided snapshot date filter (start={start}, end={end})")
        start = end = None
    return repo.list_workload_snapshots(user_id=user_id, start=start, end=end)
