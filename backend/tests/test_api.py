"""
Tests for FastAPI endpoints in main.py.
Chat turns run the real dialogue engine against the test database.
"""
import pytest
import sqlite3
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import database
from prompts import WELCOME_MESSAGE


def send(client, text):
    response = client.post("/chat", json={"message": text})
    assert response.status_code == 200
    return response.json()


class TestTaskEndpoints:
    """Tests for /tasks endpoints."""

    def test_get_tasks_empty(self, app_client):
        """GET /tasks returns empty list when no tasks."""
        response = app_client.get("/tasks")
        assert response.status_code == 200
        assert response.json() == []

    def test_get_tasks_returns_tasks(self, store_tasks, app_client, sample_tasks):
        """GET /tasks returns stored tasks in order."""
        store_tasks(sample_tasks)

        response = app_client.get("/tasks")
        assert response.status_code == 200
        assert [t["id"] for t in response.json()] == ["id-1", "id-2", "id-3"]


class TestConversationEndpoint:
    """Tests for /conversation endpoints."""

    def test_first_conversation_has_welcome(self, app_client):
        """GET /conversation creates a conversation greeted by the assistant."""
        response = app_client.get("/conversation")
        assert response.status_code == 200
        data = response.json()
        assert data["context"]["state"] == "idle"
        assert len(data["messages"]) == 1
        assert data["messages"][0]["text"] == WELCOME_MESSAGE
        assert data["messages"][0]["sender"] == "assistant"

    def test_get_conversation_is_stable(self, app_client):
        first = app_client.get("/conversation").json()
        second = app_client.get("/conversation").json()
        assert first["id"] == second["id"]

    def test_reset_conversation(self, app_client):
        """POST /conversation abandons the current flow but keeps tasks."""
        send(app_client, "add")
        before = app_client.get("/conversation").json()
        assert before["context"]["state"] == "adding-task-title"

        response = app_client.post("/conversation")
        assert response.status_code == 200
        data = response.json()
        assert data["id"] != before["id"]
        assert data["context"]["state"] == "idle"
        assert app_client.get("/conversation").json()["id"] == data["id"]


class TestQuickActions:
    """Quick actions only inject canned text."""

    def test_quick_actions(self, app_client):
        response = app_client.get("/quick-actions")
        assert response.status_code == 200
        messages = [a["message"] for a in response.json()]
        assert messages == ["Add task", "View tasks", "Update task", "Delete task"]


class TestChatEndpoint:
    """Tests for POST /chat."""

    def test_help_reply(self, app_client):
        data = send(app_client, "hello")
        assert "I can help you with tasks" in data["response"]
        assert data["context"]["state"] == "idle"
        assert data["tasks"] == []

    def test_messages_recorded(self, app_client):
        data = send(app_client, "  hello  ")
        texts = [(m["sender"], m["text"]) for m in data["messages"]]

        assert texts[0] == ("assistant", WELCOME_MESSAGE)
        assert texts[1] == ("user", "hello")
        assert texts[2][0] == "assistant"
        assert len(app_client.get("/conversation").json()["messages"]) == 3

    def test_blank_message_rejected(self, app_client):
        response = app_client.post("/chat", json={"message": "   "})
        assert response.status_code == 400
        assert response.json()["detail"] == "Message must not be empty"

    def test_missing_message_rejected(self, app_client):
        response = app_client.post("/chat", json={})
        assert response.status_code == 422

    def test_add_task_conversation(self, app_client):
        """The add flow spans several requests and persists the new task."""
        assert send(app_client, "delete")["response"] == "You don't have any tasks to delete."

        send(app_client, "add a task")
        send(app_client, "Buy milk")
        send(app_client, "Tomorrow 5pm")
        send(app_client, "high")
        data = send(app_client, "yes")

        assert data["context"]["state"] == "idle"
        assert len(data["tasks"]) == 1
        task = data["tasks"][0]
        assert task["title"] == "Buy milk"
        assert task["due_time"] == "17:00"
        assert task["priority"] == "High"
        assert task["reminder"] is True
        assert task["completed"] is False

        assert app_client.get("/tasks").json() == data["tasks"]

    def test_context_survives_between_requests(self, app_client):
        send(app_client, "new task")
        data = send(app_client, "Water plants")

        assert data["context"]["state"] == "adding-task-date"
        assert data["context"]["current_task"]["title"] == "Water plants"

    def test_invalid_selection_keeps_state(self, store_tasks, app_client, sample_tasks):
        store_tasks(sample_tasks)
        send(app_client, "delete")
        data = send(app_client, "9")

        assert data["response"] == "Invalid selection. Please enter a valid task number."
        assert data["context"]["state"] == "deleting-task-select"
        assert len(app_client.get("/tasks").json()) == 3

    def test_toggle_completion(self, store_tasks, app_client, sample_tasks):
        store_tasks(sample_tasks)
        send(app_client, "edit")
        send(app_client, "1")
        data = send(app_client, "5")

        assert data["response"] == "✅ Task marked as complete!"
        assert app_client.get("/tasks").json()[0]["completed"] is True

    def test_delete_task(self, store_tasks, app_client, sample_tasks):
        store_tasks(sample_tasks)
        send(app_client, "remove")
        data = send(app_client, "2")

        assert data["response"] == '✅ Task deleted: "Call mom"'
        assert [t["id"] for t in app_client.get("/tasks").json()] == ["id-1", "id-3"]

    def test_failed_save_does_not_duplicate_task(self, app_client, monkeypatch):
        """If a turn cannot be saved, retrying it creates the task only once."""
        for text in ["add a task", "Buy milk", "Tomorrow 5pm", "high"]:
            send(app_client, text)

        original_write = database._write_conversation

        def broken_write(*args, **kwargs):
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(database, "_write_conversation", broken_write)
        with pytest.raises(sqlite3.OperationalError):
            app_client.post("/chat", json={"message": "yes"})

        assert app_client.get("/tasks").json() == []
        assert app_client.get("/conversation").json()["context"]["state"] == "adding-task-reminder"

        monkeypatch.setattr(database, "_write_conversation", original_write)
        data = send(app_client, "yes")

        assert [t["title"] for t in data["tasks"]] == ["Buy milk"]
        assert [t["title"] for t in app_client.get("/tasks").json()] == ["Buy milk"]

    def test_turn_runs_under_lock(self, app_client, monkeypatch):
        """The engine runs while the turn lock is held, so turns cannot interleave."""
        import main

        seen = []
        real_process = main.process_message

        def checking_process(*args, **kwargs):
            seen.append(main.turn_lock.locked())
            return real_process(*args, **kwargs)

        monkeypatch.setattr(main, "process_message", checking_process)
        send(app_client, "hello")

        assert seen == [True]
        assert not main.turn_lock.locked()
