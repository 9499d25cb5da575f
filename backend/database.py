import sqlite3
import json
from datetime import datetime
from typing import Optional
from contextlib import contextmanager

from config import Config
from models import Task, Message, Conversation, ConversationContext

DATABASE_PATH = Config.DATABASE_PATH

@contextmanager
def get_db():
    """Context manager for database connections."""
    conn = sqlite3.connect(DATABASE_PATH)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()

def init_db():
    """Initialize database by running Alembic migrations."""
    import subprocess
    import os

    # Run alembic upgrade from the backend directory
    backend_dir = os.path.dirname(os.path.abspath(__file__))
    subprocess.run(
        ["alembic", "upgrade", "head"],
        cwd=backend_dir,
        check=True
    )

def _row_to_task(row) -> Task:
    """Convert a database row to a Task model."""
    return Task(
        id=row["id"],
        title=row["title"],
        due_date=row["due_date"],
        due_time=row["due_time"],
        priority=row["priority"],
        reminder=bool(row["reminder"]),
        completed=bool(row["completed"]),
        created_at=row["created_at"],
    )

def get_all_tasks() -> list[Task]:
    """All tasks in the order the conversation numbers them."""
    with get_db() as conn:
        rows = conn.execute("SELECT * FROM tasks ORDER BY position").fetchall()
        return [_row_to_task(row) for row in rows]

def _write_tasks(conn, tasks: list[Task]):
    """Replace the stored task list. List order is kept in the position column."""
    conn.execute("DELETE FROM tasks")
    conn.executemany(
        """INSERT INTO tasks
           (id, title, due_date, due_time, priority, reminder, completed, created_at, position)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        [
            (t.id, t.title, t.due_date, t.due_time, t.priority, int(t.reminder), int(t.completed), t.created_at, position)
            for position, t in enumerate(tasks)
        ]
    )

# Conversation operations
def _row_to_conversation(row) -> Conversation:
    return Conversation(
        id=row["id"],
        messages=[Message(**m) for m in json.loads(row["messages"])],
        context=ConversationContext.model_validate_json(row["context"]),
    )

def get_conversation() -> Optional[Conversation]:
    """Get the most recent conversation by updated_at, or None if there is none yet."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT id, messages, context FROM conversations ORDER BY updated_at DESC, id DESC LIMIT 1"
        ).fetchone()
        if row:
            return _row_to_conversation(row)
    return None

def new_conversation(messages: list[Message]) -> Conversation:
    """Create a conversation in the idle state and return it."""
    now = datetime.now().isoformat()
    context = ConversationContext()
    with get_db() as conn:
        cursor = conn.execute(
            "INSERT INTO conversations (messages, context, created_at, updated_at) VALUES (?, ?, ?, ?)",
            (json.dumps([m.model_dump() for m in messages]), context.model_dump_json(), now, now)
        )
        conn.commit()
        return Conversation(id=cursor.lastrowid, messages=messages, context=context)

def _write_conversation(conn, conversation_id: int, messages: list[Message], context: ConversationContext) -> bool:
    now = datetime.now().isoformat()
    cursor = conn.execute(
        "UPDATE conversations SET messages = ?, context = ?, updated_at = ? WHERE id = ?",
        (json.dumps([m.model_dump() for m in messages]), context.model_dump_json(), now, conversation_id)
    )
    return cursor.rowcount > 0

def save_turn(
    conversation_id: int,
    messages: list[Message],
    context: ConversationContext,
    tasks: Optional[list[Task]] = None
) -> bool:
    """
    Store the outcome of one chat turn in a single transaction.
    tasks=None leaves the stored task list as it is. If any write fails nothing
    is committed, so the task list and the conversation context never disagree.
    """
    with get_db() as conn:
        try:
            if tasks is not None:
                _write_tasks(conn, tasks)
            saved = _write_conversation(conn, conversation_id, messages, context)
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise
        return saved
