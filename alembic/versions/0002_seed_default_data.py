"""Seed default data.

Revision ID: 0002_seed_default_data
Revises: 0001_initial_schema
Create Date: 2026-10-18

Creates the super admin account (username: admin, password: Admin@123).
Schools start without grade thresholds and grade on the built-in
A+/A/B/C/D/F scale until bands are configured.
"""
from typing import Sequence, Union
from datetime import datetime, timezone

from alembic import op
from sqlalchemy.sql import text
from passlib.context import CryptContext


# revision identifiers, used by Alembic.
revision: str = '0002_seed_default_data'
down_revision: Union[str, None] = '0001_initial_schema'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Password hashing for seeding
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def upgrade() -> None:
    """Seed the super admin user."""
    conn = op.get_bind()
    now = datetime.now(timezone.utc)

    existing = conn.execute(text("SELECT id FROM users WHERE username = 'admin'")).fetchone()
    if existing:
        return

    password_hash = pwd_context.hash("Admin@123", rounds=12)
    conn.execute(text("""
        INSERT INTO users (name, username, password_hash, is_active, is_super_admin, created_at, updated_at)
        VALUES ('System Administrator', 'admin', :password_hash, true, true, :now, :now)
    """), {"password_hash": password_hash, "now": now})


def downgrade() -> None:
    conn = op.get_bind()
    conn.execute(text("DELETE FROM users WHERE username = 'admin'"))
