"""Seed a local console database with demo departments, cards and employees.

Usage:
    python scripts/seed_demo.py
    python scripts/seed_demo.py --db ./console.db --reset

Start the console once first so the tables exist (INIT_SCHEMA=true).
"""

import argparse
import sqlite3
import sys
from pathlib import Path

from dotenv import load_dotenv
import os

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_DB = os.getenv("SQLITE_PATH", str(BASE_DIR / "console.db"))

DEPARTMENTS = [
    ("Engineering", "R&D and platform teams"),
    ("Finance", "Accounting and payroll"),
    ("Operations", "Facilities and logistics"),
]

SECURITY_CARDS = [
    ("SC-1001", "employee", "standard", "2024-01-15", "2026-01-15", "active"),
    ("SC-1002", "employee", "restricted", "2024-03-01", "2026-03-01", "active"),
    ("SC-1003", "contractor", "standard", "2024-06-10", "2025-06-10", "expired"),
]

# (first, last, email, phone, position, dept index, card index, hire date, salary, status)
EMPLOYEES = [
    ("Ada", "Lovelace", "ada@example.com", "555-0101", "Staff Engineer", 0, 0, "2021-04-12", 145000, "active"),
    ("Grace", "Hopper", "grace@example.com", "555-0102", "Engineering Manager", 0, 1, "2019-09-01", 160000, "active"),
    ("Luca", "Pacioli", "luca@example.com", "555-0103", "Controller", 1, None, "2022-02-07", 98000, "active"),
    ("Henry", "Gantt", "henry@example.com", "555-0104", "Site Lead", 2, 2, "2020-11-23", 87000, "inactive"),
]

TABLES = ("departments", "security_cards", "employees")


def seed(db_path: str, reset: bool) -> None:
    if not Path(db_path).exists():
        print(f"[ERROR] Database not found: {db_path}")
        print("Start the console once so the schema is created, then re-run.")
        sys.exit(1)

    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    existing = {
        row[0] for row in cursor.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
    }
    missing = [t for t in TABLES if t not in existing]
    if missing:
        print(f"[ERROR] Missing tables: {', '.join(missing)}")
        conn.close()
        sys.exit(1)

    if reset:
        for table in reversed(TABLES):
            cursor.execute(f"DELETE FROM {table}")

    dept_ids = []
    for name, description in DEPARTMENTS:
        cursor.execute("INSERT INTO departments (name, description) VALUES (?, ?)", (name, description))
        dept_ids.append(cursor.lastrowid)

    card_ids = []
    for card in SECURITY_CARDS:
        cursor.execute(
            "INSERT INTO security_cards (card_number, card_type, access_level, issue_date, expiry_date, status) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            card,
        )
        card_ids.append(cursor.lastrowid)

    for first, last, email, phone, position, dept, card, hired, salary, status in EMPLOYEES:
        cursor.execute(
            "INSERT INTO employees (first_name, last_name, email, phone, position, department_id, "
            "security_card_id, hire_date, salary, status) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                first, last, email, phone, position,
                dept_ids[dept],
                card_ids[card] if card is not None else None,
                hired, salary, status,
            ),
        )

    conn.commit()
    conn.close()

    print(f"[OK] Seeded {db_path}")
    print(f"     {len(DEPARTMENTS)} departments, {len(SECURITY_CARDS)} security cards, {len(EMPLOYEES)} employees")


def main():
    parser = argparse.ArgumentParser(description="Seed the console database with demo data")
    parser.add_argument("--db", default=DEFAULT_DB, help=f"SQLite database path (default: {DEFAULT_DB})")
    parser.add_argument("--reset", action="store_true", help="Delete existing rows first")
    args = parser.parse_args()

    seed(args.db, args.reset)


if __name__ == "__main__":
    main()
