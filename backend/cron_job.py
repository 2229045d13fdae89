"""Simple script to generate team workload snapshots - can be run as a cron job."""
import logging
import os
import sys
from datetime import date, datetime

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import EngineSettings
from db import engine
from errors import ComputationUnavailable
from repository import SqlWorkloadRepository
from snapshots import generate_team_workload_snapshots

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def run(snapshot_date: date | None = None) -> dict:
    """Generate snapshots for every active user and report what happened."""
    repo = SqlWorkloadRepository(engine)
    settings = EngineSettings.from_env()
    snapshot_date = snapshot_date or date.today()

    try:
        snapshots = generate_team_workload_snapshots(repo, snapshot_date, settings)
    except ComputationUnavailable as e:
        logger.error(f"Snapshot generation failed: {e}")
        return {"success": False, "snapshot_date": snapshot_date.isoformat(), "error": str(e)}

    return {
        "success": True,
        "snapshot_date": snapshot_date.isoformat(),
        "users_snapshotted": len(snapshots),
        "overallocated_users": sum(1 for s in snapshots if s.overallocation_hours > 0),
    }


if __name__ == "__main__":
    # Optional SNAPSHOT_DATE=YYYY-MM-DD for backfills
    date_str = os.getenv("SNAPSHOT_DATE", "").strip()
    try:
        target = datetime.strptime(date_str, "%Y-%m-%d").date() if date_str else None
    except ValueError:
        print(f"ERROR: Invalid SNAPSHOT_DATE '{date_str}'. Use YYYY-MM-DD")
        sys.exit(1)

    result = run(target)

    if result["success"]:
        print(f"SUCCESS: Snapshots generated for {result['snapshot_date']}")
        print(f"Users snapshotted: {result['users_snapshotted']}")
        print(f"Overallocated users: {result['overallocated_users']}")
        sys.exit(0)
    else:
        print(f"ERROR: {result.get('error')}")
        sys.exit(1)
