"""Exclusion constraint: approved stays of a property never overlap.

Database-level second layer behind the locked re-check in approve().
daterange('[)') matches the half-open interval model, so a check-out on
the same day as the next check-in is not a collision.

Revision ID: 002_no_approved_overlap
Revises: 001_initial_schema
Create Date: 2026-10-19
"""
from __future__ import annotations

from pathlib import Path

from alembic import op

revision = "002_no_approved_overlap"
down_revision = "001_initial_schema"
branch_labels = None
depends_on = None

_SQL_FILE = Path(__file__).resolve().parent.parent / "sql" / "002_no_approved_overlap.sql"


def upgrade() -> None:
    op.execute(_SQL_FILE.read_text(encoding="utf-8"))


def downgrade() -> None:
    op.execute("ALTER TABLE reservation_requests DROP CONSTRAINT IF EXISTS no_approved_overlap")
