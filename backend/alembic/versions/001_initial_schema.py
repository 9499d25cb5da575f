"""Initial schema - tasks snapshot and conversations with dialogue context

Revision ID: 001
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
from sqlalchemy import text

revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    conn = op.get_bind()

    # position preserves the list order used for task numbering in chat
    conn.execute(text("""
        CREATE TABLE IF NOT EXISTS tasks (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            due_date TEXT NOT NULL,
            due_time TEXT NOT NULL,
            priority TEXT NOT NULL DEFAULT 'Medium',
            reminder INTEGER DEFAULT 0,
            completed INTEGER DEFAULT 0,
            created_at TEXT NOT NULL,
            position INTEGER NOT NULL
        )
    """))

    # context holds the serialized ConversationContext between turns
    conn.execute(text("""
        CREATE TABLE IF NOT EXISTS conversations (
            id INTEGER PRIMARY KEY,
            messages TEXT DEFAULT '[]',
            context TEXT NOT NULL DEFAULT '{"state": "idle"}',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """))


def downgrade() -> None:
    conn = op.get_bind()
    conn.execute(text("DROP TABLE IF EXISTS conversations"))
    conn.execute(text("DROP TABLE IF EXISTS tasks"))
