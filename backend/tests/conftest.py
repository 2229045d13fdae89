from datetime import date

import pytest
from sqlmodel import Session, create_engine

from db import create_db_and_tables
from models import CapacityProfile, ResourceAllocation, User
from repository import SqlWorkloadRepository

# Monday 2024-01-15 to Friday 2024-01-19
WEEK_START = date(2024, 1, 15)
WEEK_END = date(2024, 1, 19)


@pytest.fixture(scope="function")
def test_engine(tmp_path):
    """Create a throwaway SQLite database with all tables."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'workload_test.db'}",
        echo=False,
        connect_args={"check_same_thread": False},
    )
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def repo(test_engine):
    return SqlWorkloadRepository(test_engine)


@pytest.fixture(scope="function")
def add_rows(test_engine):
    """Insert rows and return them with their ids filled in."""

    def _add(*rows):
        with Session(test_engine, expire_on_commit=False) as session:
            session.add_all(rows)
            session.commit()
            for row in rows:
                session.refresh(row)
        return rows

    return _add


@pytest.fixture(scope="function")
def standard_user(add_rows):
    """Active user with an 8h/day profile since the start of 2024."""
    add_rows(
        User(id="u1", name="Alice Johnson"),
        CapacityProfile(user_id="u1", hours_per_day=8, hours_per_week=40, effective_from=date(2024, 1, 1)),
    )
    return "u1"


def allocation(user_id, hours, start=WEEK_START, end=WEEK_END, **kwargs):
    return ResourceAllocation(
        user_id=user_id,
        allocated_hours=hours,
        start_date=start,
        end_date=end,
        **kwargs,
    )
