# utils/bootstrap.py
"""
One-time setup routines: the demo account behind the bypass identity and an
optional demo data set. Run from startup or populate_db.py, never from a
request handler.
"""
import logging
from datetime import date, time, timedelta

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import settings
from models.equipment import Equipment
from models.request import MaintenanceRequest, RequestStatus, RequestType
from models.team import Team
from models.users import User, UserRole

logger = logging.getLogger(__name__)

DEMO_EMAIL = "demo@gearguard.com"
DEMO_NAME = "Demo User"
# Not a bcrypt hash, so nobody can log in as the demo account
DEMO_PASSWORD_HASH = "!unusable-demo-password"


def _sync_users_sequence(db: Session):
    # An explicit id leaves the Postgres serial behind; move it past MAX(id)
    if db.get_bind().dialect.name == "postgresql":
        db.execute(text(
            "SELECT setval(pg_get_serial_sequence('users', 'id'), "
            "(SELECT COALESCE(MAX(id), 1) FROM users))"
        ))


def ensure_demo_user(db: Session, user_id: int = None):
    """Make sure the account the bypass identity points at exists.

    Returns None when the demo e-mail is already taken by another account.
    """
    user_id = user_id or settings.BYPASS_USER_ID
    existing = db.get(User, user_id)
    if existing:
        return existing

    try:
        user = User(
            id=user_id,
            email=DEMO_EMAIL,
            password_hash=DEMO_PASSWORD_HASH,
            name=DEMO_NAME,
            role=UserRole.MANAGER.value,
        )
        db.add(user)
        db.flush()
        _sync_users_sequence(db)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Could not create demo user (ID: %s): %s", user_id, exc.orig)
        return None
    except Exception:
        db.rollback()
        raise

    logger.info("Created demo user (ID: %s)", user_id)
    return user


def seed_demo_data(db: Session):
    """Teams, equipment and a few requests for a fresh database. Idempotent."""
    if db.query(Team).count() > 0:
        logger.info("Demo data already present, skipping")
        return

    requester = ensure_demo_user(db)
    requester_id = requester.id if requester else None
    try:
        mechanics = Team(name="Mechanics")
        electricians = Team(name="Electricians")
        it_support = Team(name="IT Support")
        db.add_all([mechanics, electricians, it_support])
        db.flush()

        press = Equipment(name="Hydraulic Press", category="Machinery", location="Plant A",
                          maintenance_team_id=mechanics.id)
        generator = Equipment(name="Backup Generator", category="Power", location="Basement",
                              maintenance_team_id=electricians.id)
        laptop = Equipment(name="Workstation 12", category="Computers", location="Office 3",
                           maintenance_team_id=it_support.id)
        db.add_all([press, generator, laptop])
        db.flush()

        today = date.today()
        db.add_all([
            MaintenanceRequest(
                equipment_id=press.id, team_id=mechanics.id, user_id=requester_id,
                type=RequestType.CORRECTIVE.value, status=RequestStatus.NEW.value,
                title="Oil leak under main cylinder",
            ),
            MaintenanceRequest(
                equipment_id=generator.id, team_id=electricians.id, user_id=requester_id,
                type=RequestType.PREVENTIVE.value, status=RequestStatus.NEW.value,
                title="Quarterly load test", scheduled_date=today + timedelta(days=7),
                start_time=time(9, 0), duration_hours=2.0,
            ),
            MaintenanceRequest(
                equipment_id=laptop.id, team_id=it_support.id, user_id=requester_id,
                type=RequestType.CORRECTIVE.value, status=RequestStatus.IN_PROGRESS.value,
                title="Screen flickering",
            ),
        ])
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Seeded demo teams, equipment and requests")
