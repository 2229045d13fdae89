from datetime import date
from enum import Enum

from pydantic import BaseModel, model_validator


class DateRange(BaseModel):
    start: date  # inclusive
    end: date  # inclusive

    @model_validator(mode="after")
    def validate_order(self):
        if self.end < self.start:
            raise ValueError(f"end ({self.end}) must not be before start ({self.start})")
        return self


class CapacityResult(BaseModel):
    user_id: str
    total_capacity_hours: float
    available_hours: float
    unavailable_hours: float
    hours_per_day: float
    profile_is_default: bool = False


class AllocationConflict(BaseModel):
    user_id: str
    conflict_date: date
    total_allocated_hours: float
    available_hours: float
    overallocation_hours: float
    conflicting_project_ids: list[str]


class WorkloadCalculation(BaseModel):
    user_id: str
    window: DateRange
    total_capacity_hours: float
    total_allocated_hours: float
    actual_worked_hours: float
    available_hours: float
    unavailable_hours: float
    utilization_percentage: float
    overallocation_hours: float
    is_overallocated: bool
    active_projects_count: int
    active_tasks_count: int
    conflicting_allocations: list[AllocationConflict] = []


class UtilizationStatus(str, Enum):
    OVERALLOCATED = "overallocated"
    UNDERUTILIZED = "underutilized"
    OPTIMAL = "optimal"


class MemberUtilization(BaseModel):
    user_id: str
    utilization_percentage: float
    status: UtilizationStatus


class TeamUtilization(BaseModel):
    total_team_members: int
    average_utilization: float
    overallocated_members: int
    underutilized_members: int
    optimal_utilization_members: int
    total_capacity_hours: float
    total_allocated_hours: float
    members: list[MemberUtilization] = []


class SkillMatch(BaseModel):
    user_id: str
    user_name: str
    matched_skills: list[str]
    avg_proficiency: float


class AllocationCandidate(BaseModel):
    user_id: str
    user_name: str
    matched_skills: list[str]
    skill_match: float
    availability: float
    avg_proficiency: float
    hourly_rate: float
    spare_hours: float
    score: float


class ProjectResourceNeed(BaseModel):
    project_id: str
    required_skills: list[str]
    estimated_hours: float
    priority: str
    window: DateRange
    current_allocation: float
    shortfall_hours: float
    allocated_user_ids: list[str]
