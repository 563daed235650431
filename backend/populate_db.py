# backend/populate_db.py
# One-time setup: create tables, the demo account (ID 1) and, optionally, demo data.
#   python backend/populate_db.py            -> demo user only
#   python backend/populate_db.py --demo     -> demo user + teams/equipment/requests
import os
import sys
import argparse
import logging

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from database import SessionLocal, init_db
from utils.bootstrap import ensure_demo_user, seed_demo_data


def main(argv=None):
    parser = argparse.ArgumentParser(description="Bootstrap the GearGuard database")
    parser.add_argument("--demo", action="store_true", help="also seed demo teams, equipment and requests")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    init_db()
    session = SessionLocal()
    try:
        ensure_demo_user(session)
        if args.demo:
            seed_demo_data(session)
    finally:
        session.close()


if __name__ == "__main__":
    main()
