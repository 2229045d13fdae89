#!/usr/bin/env python3
"""
Script to check workload snapshots for duplicate (user_id, snapshot_date) rows.
Run this before relying on snapshot upserts: duplicates mean append mode
has been in use and someone may depend on it.
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from db import engine
from sqlmodel import Session, col, func, select
from models import WorkloadSnapshot
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def find_duplicate_snapshots(session):
    """Return (user_id, snapshot_date, count) for every key with more than one row."""
    stmt = (
        select(WorkloadSnapshot.user_id, WorkloadSnapshot.snapshot_date, func.count(WorkloadSnapshot.id))
        .group_by(col(WorkloadSnapshot.user_id), col(WorkloadSnapshot.snapshot_date))
        .having(func.count(WorkloadSnapshot.id) > 1)
        .order_by(col(WorkloadSnapshot.snapshot_date), col(WorkloadSnapshot.user_id))
    )
    return list(session.exec(stmt).all())


def check_data():
    """Report snapshot totals and duplicate keys."""
    with Session(engine) as session:
        total_count = session.exec(select(func.count(WorkloadSnapshot.id))).one()
        logger.info(f"📊 Total workload snapshots in database: {total_count}")

        if total_count == 0:
            logger.info("✅ No snapshots yet - upsert mode is safe to enable")
            return []

        duplicates = find_duplicate_snapshots(session)

        if duplicates:
            logger.warning(f"⚠️  Found {len(duplicates)} duplicate (user_id, snapshot_date) pairs:")
            for user_id, snapshot_date, count in duplicates:
                logger.warning(f"   - user_id: {user_id}, snapshot_date: {snapshot_date}, count: {count}")
            logger.warning("⚠️  Upserts will update the newest row of each pair and leave the rest")
        else:
            logger.info("✅ No duplicate snapshots found")
        return duplicates


if __name__ == "__main__":
    check_data()
