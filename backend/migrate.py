#!/usr/bin/env python3
"""
Bring an existing database up to the current schema.

Creates missing tables, adds the normalized salary columns to older ``jobs``
tables and backfills ``salary_amount`` / ``salary_currency`` from the salary text.
Run from the repo root:

    python -m backend.migrate
"""

import sys

from sqlalchemy import inspect, text

from backend.jobboard.database import SessionLocal, engine, init_db
from backend.jobboard.models.job import Job
from backend.jobboard.services.salary import normalize_salary


def _add_salary_columns() -> list[str]:
    existing = {c["name"] for c in inspect(engine).get_columns("jobs")}
    columns_to_add = {
        "salary_amount": "INTEGER",
        "salary_currency": "VARCHAR(5)",
    }

    added = []
    for col, col_type in columns_to_add.items():
        if col in existing:
            continue
        try:
            with engine.begin() as conn:
                conn.execute(text(f"ALTER TABLE jobs ADD COLUMN {col} {col_type}"))
            added.append(col)
        except Exception as e:
            print(f"✗ Failed to add column {col}: {e}")
    return added


def backfill_salary_amounts(db) -> int:
    """Fill salary_amount for jobs that have salary text but no amount yet."""
    updated = 0
    jobs = db.query(Job).filter(Job.salary.is_not(None), Job.salary_amount.is_(None)).all()
    for job in jobs:
        try:
            info = normalize_salary(job.salary, currency=job.salary_currency)
        except ValueError:
            continue
        if info.amount is None:
            continue
        job.salary_amount = info.amount
        job.salary_currency = info.currency
        updated += 1
    db.commit()
    return updated


def migrate() -> bool:
    print("Initializing database with all models...")
    init_db()
    print("✓ Database initialized successfully")

    added = _add_salary_columns()
    if added:
        print(f"✓ Added job columns: {', '.join(added)}")
    else:
        print("✓ Job columns already up to date")

    db = SessionLocal()
    try:
        count = backfill_salary_amounts(db)
    except Exception as e:
        db.rollback()
        print(f"✗ Salary backfill failed: {e}")
        return False
    finally:
        db.close()

    print(f"✓ Normalized salary for {count} job(s)")
    return True


if __name__ == "__main__":
    success = migrate()
    sys.exit(0 if success else 1)
