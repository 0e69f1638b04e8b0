# File: app/db/seed.py
"""Create tables and load demo reference data.

    python -m app.db.seed            # create missing tables, seed if empty
    python -m app.db.seed --reset    # drop everything first
"""
import argparse
import logging

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.logging import configure_logging
from app.core.security import hash_password
from app.db.base import Base, utcnow
from app.db.session import SessionLocal, engine
from app.models import (
    Category, City, Department, Issue, IssueSeverity, IssueStatus, IssueStatusUpdate,
    State, User, UserRole, Ward,
)

logger = logging.getLogger("app.seed")

DEMO_PASSWORD = "password123"

WARD_NAMES = ["Dharampeth", "Sitabuldi", "Sadar", "Lakadganj", "Dhantoli", "Hanuman Nagar", "Nehru Nagar", "Gandhibagh"]

CATEGORIES = [
    ("Roads & Infrastructure", "roads", "Potholes, broken roads and footpaths", "road"),
    ("Waste Management", "waste", "Garbage collection and dumping", "trash"),
    ("Street Lights", "lights", "Broken or missing street lights", "lightbulb"),
    ("Water Supply", "water", "Leaks, contamination and outages", "droplet"),
    ("Drainage", "drainage", "Blocked drains and waterlogging", "waves"),
    ("Public Safety", "safety", "Hazards in public spaces", "shield"),
]

DEPARTMENTS = [
    ("Public Works Department", "PWD"),
    ("Solid Waste Management", "SWM"),
    ("Electrical Department", "ELEC"),
    ("Water Works", "WW"),
    ("Drainage Department", "DRN"),
    ("Safety Division", "SAFE"),
]

# phone, name, role, assigned to the pilot city
USERS = [
    ("9999999999", "Admin", UserRole.SUPER_ADMIN, False),
    ("9999999998", "Mod1", UserRole.MODERATOR, True),
    ("9999999996", "Mod2", UserRole.MODERATOR, True),
    ("9999999997", "Authority1", UserRole.AUTHORITY, True),
    ("9876543210", "Citizen1", UserRole.CITIZEN, False),
    ("9876543211", "Citizen2", UserRole.CITIZEN, False),
]


def seed(db: Session) -> None:
    if db.query(State).filter(State.code == "MH").first():
        logger.info("Seed data already present, nothing to do")
        return

    state = State(name="Maharashtra", code="MH")
    city = City(name="Nagpur", state=state, is_active=True, pilot_start_date=utcnow())
    db.add_all([state, city])
    db.flush()

    wards = [Ward(name=name, number=str(i + 1), city_id=city.id) for i, name in enumerate(WARD_NAMES)]
    categories = [
        Category(name=name, slug=slug, description=desc, icon=icon, sort_order=i + 1)
        for i, (name, slug, desc, icon) in enumerate(CATEGORIES)
    ]
    departments = [Department(name=name, code=code, city_id=city.id) for name, code in DEPARTMENTS]
    hashed = hash_password(DEMO_PASSWORD)
    users = {
        phone: User(
            phone=phone, name=name, role=role, hashed_password=hashed,
            is_phone_verified=True, assigned_city_id=city.id if assigned else None,
        )
        for phone, name, role, assigned in USERS
    }
    db.add_all(wards + categories + departments + list(users.values()))
    db.flush()

    moderator = users["9999999998"]
    now = utcnow()
    verified = Issue(
        title="Large pothole near Gandhi Chowk",
        description="Dangerous pothole, two-wheelers skid here every evening.",
        address="Gandhi Chowk",
        category_id=categories[0].id,
        city_id=city.id,
        ward_id=wards[0].id,
        department_id=departments[0].id,
        reporter_id=users["9876543210"].id,
        moderator_id=moderator.id,
        severity=IssueSeverity.CRITICAL,
        status=IssueStatus.VERIFIED,
        is_verified=True,
        verified_at=now,
        latitude=21.1458,
        longitude=79.0882,
    )
    pending = Issue(
        title="Garbage dump not cleared",
        description="Garbage has not been picked up for a week.",
        address="Shankar Nagar",
        category_id=categories[1].id,
        city_id=city.id,
        ward_id=wards[1].id,
        reporter_id=users["9876543211"].id,
        severity=IssueSeverity.MEDIUM,
        status=IssueStatus.REPORTED,
    )
    db.add_all([verified, pending])
    db.flush()

    db.add_all([
        IssueStatusUpdate(issue_id=verified.id, to_status=IssueStatus.REPORTED,
                          user_id=verified.reporter_id, user_role=UserRole.CITIZEN, reason="Issue reported"),
        IssueStatusUpdate(issue_id=verified.id, from_status=IssueStatus.REPORTED, to_status=IssueStatus.VERIFIED,
                          user_id=moderator.id, user_role=UserRole.MODERATOR, reason="Issue verified by moderator"),
        IssueStatusUpdate(issue_id=pending.id, to_status=IssueStatus.REPORTED,
                          user_id=pending.reporter_id, user_role=UserRole.CITIZEN, reason="Issue reported"),
    ])
    db.commit()
    logger.info("Seeded %s wards, %s categories, %s departments, %s users",
                len(wards), len(categories), len(departments), len(users))


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Create tables and seed demo data.")
    parser.add_argument("--reset", action="store_true", help="drop all tables before seeding")
    args = parser.parse_args(argv)

    configure_logging(settings.log_level, settings.log_dir)
    if args.reset:
        logger.warning("Dropping all tables")
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
