import os
import sys

# Add the parent directory (backend) to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
import sqlite3
import tempfile
from fastapi.testclient import TestClient
from sqlalchemy import create_engine

from main import app
from api.deps import get_connection, get_llm_client
from models.connection import ConnectionRequest

USER_COUNT = 150
IAR_ON_USERS = 12
IAR_OFF_USERS = 8
LONG_CONTENT = "Lorem ipsum dolor sit amet " * 10


def _seed(path: str) -> None:
    conn = sqlite3.connect(path)
    cur = conn.cursor()
    cur.execute(
        "CREATE TABLE wp_users (ID INTEGER PRIMARY KEY AUTOINCREMENT, user_login TEXT NOT NULL, "
        "user_email TEXT, user_registered TEXT, display_name TEXT)"
    )
    cur.execute(
        "CREATE TABLE wp_usermeta (umeta_id INTEGER PRIMARY KEY AUTOINCREMENT, user_id INTEGER, "
        "meta_key TEXT, meta_value TEXT)"
    )
    cur.execute("CREATE INDEX idx_usermeta_key ON wp_usermeta (meta_key)")
    cur.execute("CREATE INDEX idx_usermeta_user ON wp_usermeta (user_id)")
    cur.execute(
        "CREATE TABLE wp_posts (ID INTEGER PRIMARY KEY AUTOINCREMENT, post_author INTEGER, post_date TEXT, "
        "post_content TEXT, post_title TEXT, post_excerpt TEXT, post_status TEXT, comment_status TEXT, "
        "ping_status TEXT, post_name TEXT, post_modified TEXT, post_type TEXT)"
    )
    cur.execute(
        "CREATE TABLE wp_postmeta (meta_id INTEGER PRIMARY KEY AUTOINCREMENT, post_id INTEGER, "
        "meta_key TEXT, meta_value TEXT)"
    )
    cur.execute("CREATE TABLE wp_options (option_id INTEGER PRIMARY KEY, option_name TEXT, option_value TEXT)")
    cur.execute("CREATE TABLE wp_course (ID INTEGER PRIMARY KEY, title TEXT)")
    cur.execute("CREATE TABLE wp_enrollments (id INTEGER PRIMARY KEY, course_id INTEGER, user_id INTEGER)")
    cur.execute("CREATE TABLE other_table (id INTEGER PRIMARY KEY, note TEXT)")

    for i in range(1, USER_COUNT + 1):
        cur.execute(
            "INSERT INTO wp_users (user_login, user_email, user_registered, display_name) VALUES (?, ?, ?, ?)",
            (f"user{i}", f"user{i}@example.com", "2024-01-01 00:00:00", f"User {i}"),
        )
        cur.execute(
            "INSERT INTO wp_usermeta (user_id, meta_key, meta_value) VALUES (?, 'first_name', ?)",
            (i, f"First{i}"),
        )
    for i in range(1, IAR_ON_USERS + 1):
        cur.execute("INSERT INTO wp_usermeta (user_id, meta_key, meta_value) VALUES (?, 'iar_license_status', 'on')", (i,))
    for i in range(IAR_ON_USERS + 1, IAR_ON_USERS + IAR_OFF_USERS + 1):
        cur.execute("INSERT INTO wp_usermeta (user_id, meta_key, meta_value) VALUES (?, 'iar_license_status', 'off')", (i,))
    for i in range(1, 6):
        cur.execute(
            "INSERT INTO wp_usermeta (user_id, meta_key, meta_value) VALUES (?, 'license_expiry', ?)",
            (i, f"2025-0{i}-01"),
        )
    for i in range(1, 5):
        cur.execute("INSERT INTO wp_usermeta (user_id, meta_key, meta_value) VALUES (?, 'newsletter_opt_in', 'yes')", (i,))
    for i in range(5, 8):
        cur.execute("INSERT INTO wp_usermeta (user_id, meta_key, meta_value) VALUES (?, 'newsletter_opt_in', '')", (i,))

    for i in range(1, 4):
        cur.execute(
            "INSERT INTO wp_posts (post_author, post_date, post_content, post_title, post_excerpt, post_status, "
            "comment_status, ping_status, post_name, post_modified, post_type) "
            "VALUES (?, '2024-02-01', ?, ?, '', 'publish', 'open', 'open', ?, '2024-02-02', 'product')",
            (i, LONG_CONTENT, f"Course {i}", f"course-{i}"),
        )
        cur.execute("INSERT INTO wp_postmeta (post_id, meta_key, meta_value) VALUES (?, '_price', ?)", (i, f"{i * 10}.00"))
        cur.execute("INSERT INTO wp_postmeta (post_id, meta_key, meta_value) VALUES (?, 'license_key', ?)", (i, f"KEY-{i}"))

    cur.execute("INSERT INTO wp_options (option_id, option_name, option_value) VALUES (1, 'siteurl', 'http://example.com')")
    cur.execute("INSERT INTO wp_course (ID, title) VALUES (1, 'Intro')")
    cur.execute("INSERT INTO wp_enrollments (id, course_id, user_id) VALUES (1, 1, 1)")
    conn.commit()
    conn.close()


@pytest.fixture
def temp_sqlite_db():
    fd, path = tempfile.mkstemp(suffix=".db")
    try:
        _seed(path)
        yield path
    finally:
        os.close(fd)
        os.remove(path)


@pytest.fixture
def conn_req(temp_sqlite_db):
    return ConnectionRequest(db_type="sqlite", file_path=temp_sqlite_db, table_prefix="wp_")


@pytest.fixture
def engine(temp_sqlite_db):
    eng = create_engine(f"sqlite:///{temp_sqlite_db}")
    yield eng
    eng.dispose()


class ScriptedClient:
    """Stands in for the completion endpoint: replays canned replies, records every call."""

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.calls: list[list[dict]] = []

    def complete(self, messages: list[dict]) -> str:
        self.calls.append(messages)
        if not self.replies:
            raise AssertionError("ScriptedClient ran out of replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def llm():
    return ScriptedClient()


@pytest.fixture
def client(conn_req, llm):
    app.dependency_overrides[get_connection] = lambda: conn_req
    app.dependency_overrides[get_llm_client] = lambda: llm
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
