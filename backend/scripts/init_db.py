"""
Initialize database, run migrations and optionally seed an admin.
Run from backend dir: python -m scripts.init_db [--admin-username admin --admin-password secret]
"""
import argparse
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.config import settings
from alembic.config import Config
from alembic import command


def init_db():
    """Initialize database and run all migrations."""
    os.makedirs(os.path.dirname(settings.DATABASE_PATH) or ".", exist_ok=True)

    alembic_cfg = Config(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "alembic.ini"))

    print("Running database migrations...")
    command.upgrade(alembic_cfg, "head")
    print(f"✓ Database initialized and migrations applied at {settings.DATABASE_PATH}")


def seed_admin(username: str, password: str, name: str = "Admin"):
    from app.core.database import SessionLocal
    from app.core.security import get_password_hash
    from app.models.employee import Employee, RoleEnum

    db = SessionLocal()
    try:
        if db.query(Employee).filter(Employee.username == username).first():
            print(f"Admin '{username}' already exists, skipping")
            return
        db.add(Employee(
            name=name,
            username=username,
            hashed_password=get_password_hash(password),
            role=RoleEnum.ADMIN,
            is_active=True,
        ))
        db.commit()
        print(f"✓ Created admin '{username}'")
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Initialize the dispatch database")
    parser.add_argument("--admin-username")
    parser.add_argument("--admin-password")
    args = parser.parse_args()

    init_db()
    if args.admin_username and args.admin_password:
        seed_admin(args.admin_username, args.admin_password)
