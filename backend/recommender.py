"""Rank candidates for new work by skill match and spare capacity."""
import logging
from datetime import date

from allocation import calculate_user_workload
from config import EngineSettings
from repository import WorkloadRepository
from schemas import AllocationCandidate

logger = logging.getLogger(__name__)


def score_candidate(skill_match: float, availability: float, settings: EngineSettings | None = None) -> float:
    settings = settings or EngineSettings()
    return settings.skill_weight * skill_match + settings.availability_weight * availability


def recommend_allocations(
    repo: WorkloadRepository,
    required_skills: list[str],
    estimated_hours: float,
    start: date,
    end: date,
    settings: EngineSettings | None = None,
) -> list[AllocationCandidate]:
    """Users holding at least one required skill, best score first.

    Proficiency is reported but not weighted into the score. Availability is
    100 minus utilization and is left unclamped, so an idle user can score
    above 100 and an overcommitted one below 0. Ties keep the repository's
    user order.
    """
    settings = settings or EngineSettings()
    required = list(dict.fromkeys(required_skills))
    if not required:
        return []

    matches = repo.find_users_by_skills(required)
    if not matches:
        logger.info(f"No users found with any of the skills {required}")
        return []

    candidates = []
    for match in matches:
        matched = [s for s in match.matched_skills if s in required]
        skill_match = len(matched) / len(required) * 100

        workload = calculate_user_workload(repo, match.user_id, start, end, settings, include_conflicts=False)
        availability = 100 - workload.utilization_percentage

        hourly_rate = repo.get_latest_hourly_rate(match.user_id) or 0.0

        candidates.append(
            AllocationCandidate(
                user_id=match.user_id,
                user_name=match.user_name,
                matched_skills=matched,
                skill_match=skill_match,
                availability=availability,
                avg_proficiency=match.avg_proficiency,
                hourly_rate=hourly_rate,
                spare_hours=workload.available_hours - workload.total_allocated_hours,
                score=score_candidate(skill_match, availability, settings),
            )
        )

    # sorted() is stable, so equal scores keep their input order
    candidates = sorted(candidates, key=lambda c: c.score, reverse=True)
    logger.info(
        f"Ranked {len(candidates)} candidates for {estimated_hours}h needing {required} "
        f"between {start} and {end}"
    )
    return candidates
