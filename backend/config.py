"""Engine settings and the named policies that change workload arithmetic.

Everything is read from environment variables so the cron job, the seed
script and the request handlers that call into the engine agree on policy
without passing flags around.
"""
import logging
import os
from enum import Enum

from pydantic import BaseModel, field_validator, model_validator

logger = logging.getLogger(__name__)


class AllocationCountPolicy(str, Enum):
    """How an allocation that only partly overlaps a window is counted."""

    COUNT_FULL = "count_full"  # whole allocated_hours, whatever the overlap
    PRORATE_OVERLAP = "prorate_overlap"  # share of working days inside the window


class AvailableHoursPolicy(str, Enum):
    """What to do when approved unavailability exceeds raw capacity."""

    PRESERVE_NEGATIVE = "preserve_negative"
    CLAMP_TO_ZERO = "clamp_to_zero"


class EngineSettings(BaseModel):
    default_hours_per_day: float = 8.0
    default_hours_per_week: float = 40.0
    default_overtime_multiplier: float = 1.5
    provision_missing_profiles: bool = False

    allocation_policy: AllocationCountPolicy = AllocationCountPolicy.COUNT_FULL
    available_hours_policy: AvailableHoursPolicy = AvailableHoursPolicy.PRESERVE_NEGATIVE

    active_task_statuses: tuple[str, ...] = ("todo", "in_progress")
    underutilized_threshold: float = 70.0
    overallocated_threshold: float = 100.0

    skill_weight: float = 0.6
    availability_weight: float = 0.4

    snapshot_upsert: bool = True

    max_workers: int = 4
    batch_timeout_seconds: float | None = None

    @field_validator("default_hours_per_day", "default_hours_per_week")
    @classmethod
    def validate_hours(cls, v):
        if v <= 0:
            raise ValueError("Default hours must be positive")
        return v

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v):
        if v < 1:
            raise ValueError("max_workers must be at least 1")
        return v

    @model_validator(mode="after")
    def validate_thresholds(self):
        if self.underutilized_threshold > self.overallocated_threshold:
            raise ValueError("underutilized_threshold cannot exceed overallocated_threshold")
        return self

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """Build settings from WORKLOAD_* environment variables."""
        values = {}

        env_map = {
            "WORKLOAD_DEFAULT_HOURS_PER_DAY": "default_hours_per_day",
            "WORKLOAD_DEFAULT_HOURS_PER_WEEK": "default_hours_per_week",
            "WORKLOAD_DEFAULT_OVERTIME_MULTIPLIER": "default_overtime_multiplier",
            "WORKLOAD_PROVISION_MISSING_PROFILES": "provision_missing_profiles",
            "WORKLOAD_ALLOCATION_POLICY": "allocation_policy",
            "WORKLOAD_AVAILABLE_HOURS_POLICY": "available_hours_policy",
            "WORKLOAD_SNAPSHOT_UPSERT": "snapshot_upsert",
            "WORKLOAD_MAX_WORKERS": "max_workers",
            "WORKLOAD_BATCH_TIMEOUT_SECONDS": "batch_timeout_seconds",
        }
        for env_name, field_name in env_map.items():
            raw = os.getenv(env_name)
            if raw is not None and raw.strip() != "":
                values[field_name] = raw.strip()

        statuses = os.getenv("WORKLOAD_ACTIVE_TASK_STATUSES")
        if statuses:
            values["active_task_statuses"] = tuple(s.strip() for s in statuses.split(",") if s.strip())

        settings = cls(**values)
        logger.info(
            f"Workload settings: allocation_policy={settings.allocation_policy.value}, "
            f"available_hours_policy={settings.available_hours_policy.value}, "
            f"snapshot_upsert={settings.snapshot_upsert}, max_workers={settings.max_workers}"
        )
        return settings
