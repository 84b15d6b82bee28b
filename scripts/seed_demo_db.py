#!/usr/bin/env python3
"""
Seed a local SQLite database shaped like a WordPress install, for DB Query
Assistant development.
Usage (from the repository root):
    python scripts/seed_demo_db.py
Creates: scripts/demo.db (the default DB_FILE_PATH)
"""
import sqlite3
import random
from datetime import datetime, timedelta
from pathlib import Path

DB_PATH = Path(__file__).parent / "demo.db"
PREFIX = "wp_"

DDL = [
    f"""
    CREATE TABLE IF NOT EXISTS {PREFIX}users (
        ID              INTEGER PRIMARY KEY AUTOINCREMENT,
        user_login      TEXT    UNIQUE NOT NULL,
        user_pass       TEXT    NOT NULL DEFAULT '',
        user_nicename   TEXT,
        user_email      TEXT,
        user_registered TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        display_name    TEXT
    )""",
    f"""
    CREATE TABLE IF NOT EXISTS {PREFIX}usermeta (
        umeta_id    INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id     INTEGER NOT NULL DEFAULT 0,
        meta_key    TEXT,
        meta_value  TEXT
    )""",
    f"CREATE INDEX IF NOT EXISTS usermeta_user_id ON {PREFIX}usermeta (user_id)",
    f"CREATE INDEX IF NOT EXISTS usermeta_meta_key ON {PREFIX}usermeta (meta_key)",
    f"""
    CREATE TABLE IF NOT EXISTS {PREFIX}posts (
        ID              INTEGER PRIMARY KEY AUTOINCREMENT,
        post_author     INTEGER NOT NULL DEFAULT 0,
        post_date       TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        post_content    TEXT,
        post_title      TEXT,
        post_status     TEXT DEFAULT 'publish',
        post_name       TEXT,
        post_type       TEXT DEFAULT 'post'
    )""",
    f"CREATE INDEX IF NOT EXISTS type_status_date ON {PREFIX}posts (post_type)",
    f"""
    CREATE TABLE IF NOT EXISTS {PREFIX}postmeta (
        meta_id     INTEGER PRIMARY KEY AUTOINCREMENT,
        post_id     INTEGER NOT NULL DEFAULT 0,
        meta_key    TEXT,
        meta_value  TEXT
    )""",
    f"CREATE INDEX IF NOT EXISTS postmeta_post_id ON {PREFIX}postmeta (post_id)",
    f"""
    CREATE TABLE IF NOT EXISTS {PREFIX}options (
        option_id     INTEGER PRIMARY KEY AUTOINCREMENT,
        option_name   TEXT UNIQUE NOT NULL,
        option_value  TEXT,
        autoload      TEXT DEFAULT 'yes'
    )""",
    # Plugin tables: picked up as custom tables, course_id links by naming convention
    f"""
    CREATE TABLE IF NOT EXISTS {PREFIX}course (
        ID          INTEGER PRIMARY KEY AUTOINCREMENT,
        title       TEXT NOT NULL,
        starts_on   TIMESTAMP
    )""",
    f"""
    CREATE TABLE IF NOT EXISTS {PREFIX}course_enrollments (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        course_id   INTEGER,
        user_id     INTEGER,
        enrolled_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",
]

FIRST_NAMES = ['Ada', 'Grace', 'Alan', 'Linus', 'Margaret', 'Ken', 'Barbara', 'Dennis']
COUNTRIES   = ['US', 'UK', 'DE', 'IN', 'JP']
COURSES     = ['IAR Basics', 'Advanced IAR', 'License Renewal Workshop']
USER_COUNT  = 150


def seed():
    conn = sqlite3.connect(DB_PATH)
    cur  = conn.cursor()

    for stmt in DDL:
        cur.execute(stmt)

    # users + usermeta
    for i in range(1, USER_COUNT + 1):
        registered = datetime.now() - timedelta(days=random.randint(10, 730))
        cur.execute(f"INSERT OR IGNORE INTO {PREFIX}users(user_login,user_nicename,user_email,user_registered,display_name) "
                    "VALUES (?,?,?,?,?)",
                    (f"user{i}", f"user-{i}", f"user{i}@example.com", registered, f"User {i}"))
        meta = [
            ("first_name", random.choice(FIRST_NAMES)),
            ("billing_country", random.choice(COUNTRIES)),
            # Checkbox plugin field: 'on' when ticked, missing or '' otherwise
            ("iar_license_status", random.choice(["on", "on", ""])),
        ]
        if random.random() < 0.3:
            meta.append(("iar_license_expiry", (registered + timedelta(days=365)).strftime("%Y-%m-%d")))
        if random.random() < 0.5:
            meta.append(("newsletter_opt_in", random.choice(["yes", "no"])))
        for key, value in meta:
            cur.execute(f"INSERT INTO {PREFIX}usermeta(user_id,meta_key,meta_value) VALUES (?,?,?)", (i, key, value))

    # courses as posts + plugin table
    for n, title in enumerate(COURSES, start=1):
        cur.execute(f"INSERT INTO {PREFIX}posts(post_author,post_content,post_title,post_name,post_type) VALUES (?,?,?,?,?)",
                    (1, f"{title} course description. " * 8, title, title.lower().replace(" ", "-"), "product"))
        post_id = cur.lastrowid
        cur.execute(f"INSERT INTO {PREFIX}postmeta(post_id,meta_key,meta_value) VALUES (?,?,?)",
                    (post_id, "_price", f"{random.randint(50, 400)}.00"))
        cur.execute(f"INSERT INTO {PREFIX}postmeta(post_id,meta_key,meta_value) VALUES (?,?,?)",
                    (post_id, "license_required", random.choice(["1", "0"])))
        cur.execute(f"INSERT OR IGNORE INTO {PREFIX}course(ID,title,starts_on) VALUES (?,?,?)",
                    (n, title, datetime.now() + timedelta(days=30 * n)))

    # enrollments (300)
    for _ in range(300):
        cur.execute(f"INSERT INTO {PREFIX}course_enrollments(course_id,user_id) VALUES (?,?)",
                    (random.randint(1, len(COURSES)), random.randint(1, USER_COUNT)))

    cur.execute(f"INSERT OR IGNORE INTO {PREFIX}options(option_name,option_value) VALUES ('siteurl','http://localhost')")
    cur.execute(f"INSERT OR IGNORE INTO {PREFIX}options(option_name,option_value) VALUES ('blogname','Demo Site')")

    conn.commit()
    conn.close()
    print(f"Demo database seeded: {DB_PATH}")
    print(f"   Tables: {PREFIX}users, {PREFIX}usermeta, {PREFIX}posts, {PREFIX}postmeta, {PREFIX}options, "
          f"{PREFIX}course, {PREFIX}course_enrollments")

if __name__ == "__main__":
    seed()
