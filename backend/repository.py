"""Storage collaborator for the workload engine.

The engine only talks to a WorkloadRepository. SqlWorkloadRepository opens a
short session per query, so a multi-step computation sees a best-effort view
of the data rather than a single consistent snapshot: allocations or
availability written by another process mid-computation may or may not be
included.
"""
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from contextlib import contextmanager
from datetime import UTC, date, datetime
from typing import Iterable, Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, func, select

from errors import ComputationUnavailable
from models import (
    AvailabilityPeriod,
    CapacityProfile,
    ResourceAllocation,
    Skill,
    Task,
    TimeEntry,
    User,
    WorkloadSnapshot,
)
from schemas import SkillMatch

logger = logging.getLogger(__name__)

SNAPSHOT_FIELDS = (
    "total_allocated_hours",
    "actual_worked_hours",
    "available_hours",
    "utilization_percentage",
    "overallocation_hours",
    "active_projects_count",
    "active_tasks_count",
)


class WorkloadRepository(ABC):
    """Queries the workload engine needs from persistent storage."""

    @abstractmethod
    def get_active_capacity_profile(self, user_id: str, day: date) -> CapacityProfile | None:
        """Latest profile with effective_from <= day and no effective_to before day."""

    @abstractmethod
    def list_capacity_profiles(self, user_id: str) -> list[CapacityProfile]:
        pass

    @abstractmethod
    def insert_capacity_profile(self, profile: CapacityProfile) -> CapacityProfile:
        pass

    @abstractmethod
    def get_approved_availability(self, user_id: str, start: date, end: date) -> list[AvailabilityPeriod]:
        pass

    @abstractmethod
    def get_active_allocations(
        self,
        start: date,
        end: date,
        user_id: str | None = None,
        project_id: str | None = None,
    ) -> list[ResourceAllocation]:
        pass

    @abstractmethod
    def sum_time_entry_hours(self, user_id: str, start: date, end: date) -> float:
        pass

    @abstractmethod
    def get_active_task_count(self, user_id: str, statuses: Iterable[str]) -> int:
        pass

    @abstractmethod
    def get_user_skills(self, user_id: str) -> list[Skill]:
        pass

    @abstractmethod
    def find_users_by_skills(self, skill_names: Iterable[str]) -> list[SkillMatch]:
        """Active users holding at least one of the named skills."""

    @abstractmethod
    def get_latest_hourly_rate(self, user_id: str) -> float | None:
        pass

    @abstractmethod
    def insert_workload_snapshot(self, snapshot: WorkloadSnapshot) -> WorkloadSnapshot:
        pass

    @abstractmethod
    def upsert_workload_snapshot(self, snapshot: WorkloadSnapshot) -> WorkloadSnapshot:
        """Insert, or overwrite the figures of the row keyed on (user_id, snapshot_date)."""

    @abstractmethod
    def list_workload_snapshots(
        self,
        user_id: str | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[WorkloadSnapshot]:
        pass

    @abstractmethod
    def list_active_users(self) -> list[str]:
        pass


class SqlWorkloadRepository(WorkloadRepository):
    def __init__(self, engine):
        self.engine = engine

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        try:
            with Session(self.engine, expire_on_commit=False) as session:
                yield session
        except SQLAlchemyError as e:
            logger.error(f"Storage failure during {operation}: {str(e)}")
            raise ComputationUnavailable(operation, str(e)) from e

    def get_active_capacity_profile(self, user_id, day):
        with self._session("get_active_capacity_profile") as session:
            stmt = (
                select(CapacityProfile)
                .where(CapacityProfile.user_id == user_id)
                .where(CapacityProfile.effective_from <= day)
                .where(
                    (col(CapacityProfile.effective_to).is_(None))
                    | (col(CapacityProfile.effective_to) >= day)
                )
                .order_by(col(CapacityProfile.effective_from).desc(), col(CapacityProfile.id).desc())
            )
            return session.exec(stmt).first()

    def list_capacity_profiles(self, user_id):
        with self._session("list_capacity_profiles") as session:
            stmt = (
                select(CapacityProfile)
                .where(CapacityProfile.user_id == user_id)
                .order_by(col(CapacityProfile.effective_from), col(CapacityProfile.id))
            )
            return list(session.exec(stmt).all())

    def insert_capacity_profile(self, profile):
        with self._session("insert_capacity_profile") as session:
            session.add(profile)
            session.commit()
            session.refresh(profile)
            logger.info(f"Inserted capacity profile {profile.id} for user {profile.user_id}")
            return profile

    def get_approved_availability(self, user_id, start, end):
        with self._session("get_approved_availability") as session:
            stmt = (
                select(AvailabilityPeriod)
                .where(AvailabilityPeriod.user_id == user_id)
                .where(AvailabilityPeriod.status == "approved")
                .where(AvailabilityPeriod.start_date <= end)
                .where(AvailabilityPeriod.end_date >= start)
                .order_by(col(AvailabilityPeriod.start_date))
            )
            return list(session.exec(stmt).all())

    def get_active_allocations(self, start, end, user_id=None, project_id=None):
        with self._session("get_active_allocations") as session:
            stmt = (
                select(ResourceAllocation)
                .where(ResourceAllocation.status == "active")
                .where(ResourceAllocation.start_date <= end)
                .where(ResourceAllocation.end_date >= start)
            )
            if user_id is not None:
                stmt = stmt.where(ResourceAllocation.user_id == user_id)
            if project_id is not None:
                stmt = stmt.where(ResourceAllocation.project_id == project_id)
            stmt = stmt.order_by(col(ResourceAllocation.start_date), col(ResourceAllocation.id))
            return list(session.exec(stmt).all())

    def sum_time_entry_hours(self, user_id, start, end):
        with self._session("sum_time_entry_hours") as session:
            stmt = (
                select(func.coalesce(func.sum(TimeEntry.hours), 0.0))
                .where(TimeEntry.user_id == user_id)
                .where(TimeEntry.work_date >= start)
                .where(TimeEntry.work_date <= end)
            )
            return float(session.exec(stmt).one() or 0.0)

    def get_active_task_count(self, user_id, statuses):
        statuses = list(statuses)
        if not statuses:
            return 0
        with self._session("get_active_task_count") as session:
            stmt = (
                select(func.count(Task.id))
                .where(Task.assigned_to == user_id)
                .where(col(Task.status).in_(statuses))
            )
            return int(session.exec(stmt).one() or 0)

    def get_user_skills(self, user_id):
        with self._session("get_user_skills") as session:
            stmt = (
                select(Skill)
                .where(Skill.user_id == user_id)
                .order_by(col(Skill.proficiency_level).desc(), col(Skill.skill_name))
            )
            return list(session.exec(stmt).all())

    def find_users_by_skills(self, skill_names):
        names = list(dict.fromkeys(skill_names))
        if not names:
            return []
        with self._session("find_users_by_skills") as session:
            stmt = (
                select(Skill, User)
                .join(User, col(User.id) == col(Skill.user_id))
                .where(User.is_active == True)  # noqa: E712
                .where(col(Skill.skill_name).in_(names))
                .order_by(col(User.name), col(User.id))
            )
            rows = session.exec(stmt).all()

        # Group per user, keeping the first-seen order of users
        names_by_user = {}
        skills_by_user = defaultdict(list)
        for skill, user in rows:
            names_by_user.setdefault(user.id, user.name)
            skills_by_user[user.id].append(skill)

        matches = []
        for user_id, user_name in names_by_user.items():
            skills = skills_by_user[user_id]
            matched = sorted({s.skill_name for s in skills})
            avg_proficiency = sum(s.proficiency_level for s in skills) / len(skills)
            matches.append(
                SkillMatch(
                    user_id=user_id,
                    user_name=user_name,
                    matched_skills=matched,
                    avg_proficiency=avg_proficiency,
                )
            )
        return matches

    def get_latest_hourly_rate(self, user_id):
        with self._session("get_latest_hourly_rate") as session:
            stmt = (
                select(ResourceAllocation.hourly_rate)
                .where(ResourceAllocation.user_id == user_id)
                .where(col(ResourceAllocation.hourly_rate).is_not(None))
                .order_by(col(ResourceAllocation.created_at).desc(), col(ResourceAllocation.id).desc())
            )
            return session.exec(stmt).first()

    def insert_workload_snapshot(self, snapshot):
        with self._session("insert_workload_snapshot") as session:
            session.add(snapshot)
            session.commit()
            session.refresh(snapshot)
            return snapshot

    def upsert_workload_snapshot(self, snapshot):
        with self._session("upsert_workload_snapshot") as session:
            # Latest row wins if append mode already left duplicates behind
            existing = session.exec(
                select(WorkloadSnapshot)
                .where(WorkloadSnapshot.user_id == snapshot.user_id)
                .where(WorkloadSnapshot.snapshot_date == snapshot.snapshot_date)
                .order_by(col(WorkloadSnapshot.id).desc())
            ).first()

            if existing:
                for field_name in SNAPSHOT_FIELDS:
                    setattr(existing, field_name, getattr(snapshot, field_name))
                existing.updated_at = datetime.now(UTC)
                target = existing
            else:
                session.add(snapshot)
                target = snapshot

            session.commit()
            session.refresh(target)
            return target

    def list_workload_snapshots(self, user_id=None, start=None, end=None):
        with self._session("list_workload_snapshots") as session:
            stmt = select(WorkloadSnapshot)
            if user_id is not None:
                stmt = stmt.where(WorkloadSnapshot.user_id == user_id)
            if start is not None:
                stmt = stmt.where(WorkloadSnapshot.snapshot_date >= start)
            if end is not None:
                stmt = stmt.where(WorkloadSnapshot.snapshot_date <= end)
            stmt = stmt.order_by(col(WorkloadSnapshot.snapshot_date).desc(), col(WorkloadSnapshot.id).desc())
            return list(session.exec(stmt).all())

    def list_active_users(self):
        with self._session("list_active_users") as session:
            stmt = select(User.id).where(User.is_active == True).order_by(col(User.name), col(User.id))  # noqa: E712
            return list(session.exec(stmt).all())
