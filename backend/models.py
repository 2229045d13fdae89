from datetime import UTC, date, datetime
from uuid import uuid4

from sqlmodel import Field, Index, SQLModel


class User(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    name: str = Field(index=True)
    email: str | None = Field(default=None, index=True)
    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Task(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    title: str
    project_id: str | None = Field(default=None, index=True)
    assigned_to: str | None = Field(default=None, index=True)
    status: str = Field(default="todo", index=True)  # todo, in_progress, review, done
    estimated_hours: float | None = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class CapacityProfile(SQLModel, table=True):
    __tablename__ = "capacity_profile"

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    hours_per_day: float = Field(default=8.0)
    hours_per_week: float = Field(default=40.0)
    overtime_multiplier: float = Field(default=1.5)
    effective_from: date = Field(default_factory=date.today, index=True)
    effective_to: date | None = Field(default=None)  # None means open-ended
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class AvailabilityPeriod(SQLModel, table=True):
    __tablename__ = "availability_period"

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    type: str  # vacation, training, holiday, sick, partial_day, other
    status: str = Field(default="pending", index=True)  # pending, approved, rejected
    start_date: date = Field(index=True)
    end_date: date = Field(index=True)
    hours_per_day: float | None = Field(default=None)  # partial-day override
    description: str | None = Field(default=None)
    approved_by: str | None = Field(default=None)
    approved_at: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ResourceAllocation(SQLModel, table=True):
    __tablename__ = "resource_allocation"

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    project_id: str | None = Field(default=None, index=True)
    task_id: int | None = Field(default=None)
    allocation_type: str = Field(default="project")  # project, task, milestone
    allocated_hours: float  # total for the whole span, not a daily rate
    hourly_rate: float | None = Field(default=None)
    start_date: date = Field(index=True)
    end_date: date = Field(index=True)
    utilization_target: int = Field(default=100)
    priority: str = Field(default="medium")
    status: str = Field(default="active", index=True)  # active, completed, cancelled, on_hold
    notes: str | None = Field(default=None)
    created_by: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class TimeEntry(SQLModel, table=True):
    __tablename__ = "time_entry"

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    project_id: str | None = Field(default=None)
    work_date: date = Field(index=True)
    hours: float
    billable: bool = Field(default=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Skill(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    skill_name: str = Field(index=True)
    category: str | None = Field(default=None)  # technical, soft_skills, domain_knowledge, tools
    proficiency_level: int = Field(default=1)  # 1-5
    years_experience: float | None = Field(default=None)
    is_certified: bool = Field(default=False)
    certification_name: str | None = Field(default=None)
    last_used: date | None = Field(default=None)


class WorkloadSnapshot(SQLModel, table=True):
    __tablename__ = "workload_snapshot"
    # Not unique: append mode may legitimately write several rows per day
    __table_args__ = (Index("ix_workload_snapshot_user_date", "user_id", "snapshot_date"),)

    id: int | None = Field(default=None, primary_key=True)
    user_id: str
    snapshot_date: date
    total_allocated_hours: float
    actual_worked_hours: float = Field(default=0.0)
    available_hours: float
    utilization_percentage: float = Field(default=0.0)
    overallocation_hours: float = Field(default=0.0)
    active_projects_count: int = Field(default=0)
    active_tasks_count: int = Field(default=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime | None = Field(default=None)
