"""Capacity resolution: how many hours a user can work in a window.

A user's capacity profile is looked up once, for the first day of the
window, and applied to the whole window. A profile change that takes effect
mid-window is therefore ignored here; the per-day conflict scan in
allocation.py is the only place that follows the profile timeline day by day.
"""
import logging
from datetime import date

from calendar_utils import overlap, working_days
from config import AvailableHoursPolicy, EngineSettings
from errors import ComputationUnavailable
from models import CapacityProfile
from repository import WorkloadRepository
from schemas import CapacityResult, DateRange

logger = logging.getLogger(__name__)


def default_profile(user_id: str, settings: EngineSettings, effective_from: date | None = None) -> CapacityProfile:
    return CapacityProfile(
        user_id=user_id,
        hours_per_day=settings.default_hours_per_day,
        hours_per_week=settings.default_hours_per_week,
        overtime_multiplier=settings.default_overtime_multiplier,
        effective_from=effective_from or date.today(),
        effective_to=None,
    )


def resolve_active_profile(profiles: list[CapacityProfile], day: date) -> CapacityProfile | None:
    """Pick the profile in effect on day: latest effective_from wins."""
    active = None
    for profile in profiles:
        if profile.effective_from > day:
            continue
        if profile.effective_to is not None and profile.effective_to < day:
            continue
        if active is None or profile.effective_from >= active.effective_from:
            active = profile
    return active


def ensure_default_profile(
    repo: WorkloadRepository,
    user_id: str,
    settings: EngineSettings | None = None,
) -> tuple[CapacityProfile, bool]:
    """Make sure user_id has a capacity profile for today.

    Returns (profile, created). A failed write is logged and the unsaved
    default is returned, so callers can keep computing.
    """
    settings = settings or EngineSettings()
    today = date.today()

    existing = repo.get_active_capacity_profile(user_id, today)
    if existing is not None:
        return existing, False

    profile = default_profile(user_id, settings, effective_from=today)
    try:
        profile = repo.insert_capacity_profile(profile)
    except ComputationUnavailable as e:
        logger.warning(f"Failed to create default capacity for user {user_id}, continuing with runtime defaults: {e}")
        return profile, False

    logger.info(f"Provisioned default capacity profile for user {user_id}")
    return profile, True


def get_capacity_profile(
    repo: WorkloadRepository,
    user_id: str,
    day: date,
    settings: EngineSettings,
) -> tuple[CapacityProfile, bool]:
    """Return (profile, is_default) for day."""
    profile = repo.get_active_capacity_profile(user_id, day)
    if profile is not None:
        return profile, False

    logger.warning(f"No capacity data found for user {user_id}, using defaults")
    if settings.provision_missing_profiles:
        ensure_default_profile(repo, user_id, settings)
    return default_profile(user_id, settings), True


def unavailable_hours(periods, window: DateRange, hours_per_day: float) -> float:
    total = 0.0
    for period in periods:
        if period.end_date < period.start_date:
            logger.warning(
                f"Ignoring availability period {period.id} for user {period.user_id}: "
                f"ends {period.end_date} before it starts {period.start_date}"
            )
            continue
        clipped = overlap(DateRange(start=period.start_date, end=period.end_date), window)
        if clipped is None:
            continue
        rate = period.hours_per_day if period.hours_per_day is not None else hours_per_day
        total += working_days(clipped.start, clipped.end) * rate
    return total


def resolve_capacity(
    repo: WorkloadRepository,
    user_id: str,
    start: date,
    end: date,
    settings: EngineSettings | None = None,
) -> CapacityResult:
    """Total, unavailable and available hours for user_id in [start, end]."""
    settings = settings or EngineSettings()
    window = DateRange(start=start, end=end)

    profile, is_default = get_capacity_profile(repo, user_id, start, settings)
    total_capacity_hours = working_days(start, end) * profile.hours_per_day

    periods = repo.get_approved_availability(user_id, start, end)
    unavailable = unavailable_hours(periods, window, profile.hours_per_day)

    available = total_capacity_hours - unavailable
    if settings.available_hours_policy == AvailableHoursPolicy.CLAMP_TO_ZERO:
        available = max(0.0, available)
    elif available < 0:
        logger.info(
            f"User {user_id} has {unavailable}h unavailable against {total_capacity_hours}h "
            f"capacity between {start} and {end}"
        )

    return CapacityResult(
        user_id=user_id,
        total_capacity_hours=total_capacity_hours,
        available_hours=available,
        unavailable_hours=unavailable,
        hours_per_day=profile.hours_per_day,
        profile_is_default=is_default,
    )
