from datetime import date

from sqlmodel import Session, select

from db import engine
from models import (
    AvailabilityPeriod,
    CapacityProfile,
    ResourceAllocation,
    Skill,
    Task,
    TimeEntry,
    User,
)


def seed_database():
    """Seed the database with sample data."""
    with Session(engine) as session:
        # Check if data already exists
        existing = session.exec(select(User)).first()
        if existing:
            print("Database already has data, skipping seed.")
            return

        alice = User(id="alice", name="Alice Johnson", email="alice@example.com")
        bob = User(id="bob", name="Bob Smith", email="bob@example.com")
        carol = User(id="carol", name="Carol Davis", email="carol@example.com")

        sample_rows = [
            alice,
            bob,
            carol,
            CapacityProfile(user_id="alice", hours_per_day=8, hours_per_week=40, effective_from=date(2024, 1, 1)),
            CapacityProfile(user_id="bob", hours_per_day=6, hours_per_week=30, effective_from=date(2024, 1, 1)),
            # Carol has no profile on purpose, the default is provisioned by migration 001
            AvailabilityPeriod(
                user_id="carol",
                type="vacation",
                status="approved",
                start_date=date(2024, 1, 15),  # Monday
                end_date=date(2024, 1, 16),  # Tuesday
                description="Vacation",
                approved_by="alice",
            ),
            ResourceAllocation(
                user_id="alice",
                project_id="website-redesign",
                allocated_hours=40,
                hourly_rate=95,
                start_date=date(2024, 1, 15),
                end_date=date(2024, 1, 19),
                created_by="alice",
            ),
            ResourceAllocation(
                user_id="alice",
                project_id="mobile-app",
                allocated_hours=10,
                hourly_rate=95,
                start_date=date(2024, 1, 15),
                end_date=date(2024, 1, 19),
                priority="high",
                created_by="alice",
            ),
            ResourceAllocation(
                user_id="bob",
                project_id="website-redesign",
                allocated_hours=20,
                hourly_rate=80,
                start_date=date(2024, 1, 15),
                end_date=date(2024, 1, 19),
                created_by="alice",
            ),
            ResourceAllocation(
                user_id="carol",
                project_id="mobile-app",
                allocated_hours=24,
                start_date=date(2024, 1, 15),
                end_date=date(2024, 1, 19),
                created_by="alice",
            ),
            TimeEntry(user_id="alice", project_id="website-redesign", work_date=date(2024, 1, 15), hours=8),
            TimeEntry(user_id="bob", project_id="website-redesign", work_date=date(2024, 1, 15), hours=4),
            Task(title="Landing page", project_id="website-redesign", assigned_to="alice", status="in_progress"),
            Task(title="Push notifications", project_id="mobile-app", assigned_to="carol", status="todo"),
            Skill(user_id="alice", skill_name="python", category="technical", proficiency_level=5),
            Skill(user_id="alice", skill_name="react", category="technical", proficiency_level=3),
            Skill(user_id="bob", skill_name="react", category="technical", proficiency_level=4),
            Skill(user_id="carol", skill_name="python", category="technical", proficiency_level=2),
        ]

        session.add_all(sample_rows)
        session.commit()
        print(f"Seeded database with {len(sample_rows)} sample rows.")


if __name__ == "__main__":
    from db import create_db_and_tables

    create_db_and_tables()
    seed_database()
