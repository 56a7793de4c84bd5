"""
Add explicit pause state to recurring series

Migration to add to bookings:
- series_state (ACTIVE/PAUSED)
- paused_at
- ck_bookings_not_own_parent check (PostgreSQL only)

Series paused by the old flow carry a "[PAUSED]" prefix in internal_notes.
They are backfilled to series_state = 'PAUSED'; the prefix is left in place and
removed, with the original notes restored, when the series is resumed.

Run with: python migrations/add_recurring_series_state.py
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import inspect, text

from app.database import IS_SQLITE, engine


def upgrade():
    """Add series state columns and backfill legacy paused series"""
    existing_columns = {column["name"] for column in inspect(engine).get_columns("bookings")}

    with engine.connect() as conn:
        if "series_state" not in existing_columns:
            conn.execute(text("""
                ALTER TABLE bookings
                ADD COLUMN series_state VARCHAR(20) NOT NULL DEFAULT 'ACTIVE'
            """))
            print("✅ Added series_state column")
        else:
            print("ℹ️  series_state column already exists")

        if "paused_at" not in existing_columns:
            conn.execute(text("""
                ALTER TABLE bookings
                ADD COLUMN paused_at TIMESTAMP
            """))
            print("✅ Added paused_at column")
        else:
            print("ℹ️  paused_at column already exists")

        result = conn.execute(text("""
            UPDATE bookings
            SET series_state = 'PAUSED',
                paused_at = COALESCE(paused_at, updated_at, created_at)
            WHERE recurrence_parent_id IS NULL
            AND is_recurring = :is_recurring
            AND internal_notes LIKE '[PAUSED]%'
            AND series_state = 'ACTIVE'
        """), {"is_recurring": True})
        print(f"✅ Backfilled {result.rowcount} series paused by notes marker")

        if not IS_SQLITE:
            conn.execute(text("""
                ALTER TABLE bookings
                DROP CONSTRAINT IF EXISTS ck_bookings_not_own_parent
            """))
            conn.execute(text("""
                ALTER TABLE bookings
                ADD CONSTRAINT ck_bookings_not_own_parent
                CHECK (recurrence_parent_id IS NULL OR recurrence_parent_id <> id)
            """))
            print("✅ Added ck_bookings_not_own_parent constraint")

        conn.commit()
        print("\n✅ Migration completed successfully!")


def downgrade():
    """Remove series state columns"""
    with engine.connect() as conn:
        if not IS_SQLITE:
            conn.execute(text(
                "ALTER TABLE bookings DROP CONSTRAINT IF EXISTS ck_bookings_not_own_parent"
            ))
        conn.execute(text("ALTER TABLE bookings DROP COLUMN paused_at"))
        conn.execute(text("ALTER TABLE bookings DROP COLUMN series_state"))
        conn.commit()
        print("✅ Migration rolled back successfully!")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Manage recurring series state migration")
    parser.add_argument("--down", action="store_true", help="Rollback the migration")
    args = parser.parse_args()

    if args.down:
        print("Rolling back migration...")
        downgrade()
    else:
        print("Running migration...")
        upgrade()
