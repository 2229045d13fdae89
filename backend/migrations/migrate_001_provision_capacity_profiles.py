"""
Migration: Provision default capacity profiles.

This migration:
1. Finds active users with no capacity profile in effect today
2. Inserts the default profile (8h/day, 40h/week, 1.5x overtime) for each

Capacity reads do not write by default, so this is the step that gives new users a
stored profile. Safe to run repeatedly: users who already have a profile in
effect are skipped.
"""
import logging

from config import EngineSettings
from capacity import ensure_default_profile
from repository import SqlWorkloadRepository

logger = logging.getLogger(__name__)


def migrate(engine, settings=None):
    """Run migration. Returns the number of profiles created."""
    settings = settings or EngineSettings.from_env()
    repo = SqlWorkloadRepository(engine)

    created = 0
    for user_id in repo.list_active_users():
        _, was_created = ensure_default_profile(repo, user_id, settings)
        if was_created:
            created += 1

    logger.info(f"Migration 001 completed successfully, {created} default profiles created")
    return created
