"""
Shared pytest fixtures for backend tests.
Uses a temporary SQLite database file for isolation.
"""
import pytest
import sqlite3
import sys
import os
from datetime import datetime

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import database
from models import Task


# Fixed "now" for engine tests: 18 October 2026, 10:30
FIXED_NOW = datetime(2026, 10, 18, 10, 30)


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def id_factory():
    """Deterministic ids: task-1, task-2, ..."""
    counter = {"n": 0}

    def next_id():
        counter["n"] += 1
        return f"task-{counter['n']}"

    return next_id


@pytest.fixture
def make_task():
    def _make(task_id, title, **fields):
        values = {
            "due_date": "10/18/2026",
            "due_time": "9:00 AM",
            "priority": "Medium",
            "reminder": False,
            "completed": False,
            "created_at": "2026-10-18T08:00:00",
        }
        values.update(fields)
        return Task(id=task_id, title=title, **values)

    return _make


@pytest.fixture
def sample_tasks(make_task):
    return [
        make_task("id-1", "Buy groceries", priority="High"),
        make_task("id-2", "Call mom", due_date="Dec 25", due_time="14:00", completed=True),
        make_task("id-3", "Pay rent", priority="Low", reminder=True),
    ]


@pytest.fixture
def test_db(monkeypatch, tmp_path):
    """
    Create an isolated test database for each test.
    Uses a temp file (not :memory:) because database.py opens new connections per operation.
    """
    db_path = str(tmp_path / "test.db")
    monkeypatch.setattr(database, "DATABASE_PATH", db_path)
    monkeypatch.setattr(database, "init_db", lambda: None)

    # Create tables directly (skip alembic for tests)
    conn = sqlite3.connect(db_path)
    conn.executescript("""
        CREATE TABLE tasks (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            due_date TEXT NOT NULL,
            due_time TEXT NOT NULL,
            priority TEXT NOT NULL DEFAULT 'Medium',
            reminder INTEGER DEFAULT 0,
            completed INTEGER DEFAULT 0,
            created_at TEXT NOT NULL,
            position INTEGER NOT NULL
        );

        CREATE TABLE conversations (
            id INTEGER PRIMARY KEY,
            messages TEXT DEFAULT '[]',
            context TEXT NOT NULL DEFAULT '{"state": "idle"}',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
    """)
    conn.commit()
    conn.close()

    yield db_path


@pytest.fixture
def store_tasks(test_db):
    """Seed the tasks table directly, outside any conversation turn."""
    def _store(tasks):
        with database.get_db() as conn:
            database._write_tasks(conn, tasks)
            conn.commit()
    return _store


@pytest.fixture
def app_client(test_db, monkeypatch):
    """
    Create a test client for the FastAPI app.
    Mocks init_db to skip alembic migrations.
    """
    from fastapi.testclient import TestClient
    import main

    # Skip alembic in tests - tables already created by test_db fixture
    monkeypatch.setattr(main, "init_db", lambda: None)

    with TestClient(main.app) as client:
        yield client
