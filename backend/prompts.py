# Reply texts for the task assistant.
# Flow prompts are emitted in order: each one is answered by the next user message.
from models import Task

WELCOME_MESSAGE = (
    "Hi! I'm your task assistant. I can help you add, update, delete, and view tasks. "
    "What would you like to do?"
)

HELP_MESSAGE = """Hi! I can help you with tasks. You can:

• Add a new task
• Update a task
• Delete a task
• View all tasks

What would you like to do?"""

# Add flow
ASK_TITLE = "What is the task?"
ASK_DUE = "What is the due date & time? (e.g., Tomorrow 3pm, Dec 25 2pm)"
ASK_PRIORITY = "Any priority? (High/Medium/Low)"
ASK_REMINDER = "Do you want to add a reminder? (Yes/No)"

# Task list headers
UPDATE_HEADER = "Which task would you like to update?"
DELETE_HEADER = "Which task would you like to delete?"
VIEW_HEADER = "Here are your tasks:"

# Empty task list
NO_TASKS_TO_UPDATE = "You don't have any tasks yet. Would you like to add one?"
NO_TASKS_TO_DELETE = "You don't have any tasks to delete."
NO_TASKS_TO_VIEW = "You don't have any tasks yet. Want to add one?"

# Update flow
FIELD_MENU = """What would you like to change?

1. Title
2. Date/Time
3. Priority
4. Reminder
5. Mark as {toggle}"""
ASK_NEW_VALUE = "What's the new {field}?"

# Recoverable problems
INVALID_TASK_NUMBER = "Invalid selection. Please enter a valid task number."
INVALID_FIELD_NUMBER = "Invalid selection. Please enter a number from 1-5."
TASK_NOT_FOUND = "Task not found."
FLOW_RESTART = "Sorry, I lost track of that task. Let's start over. What would you like to do?"

QUICK_ACTIONS = [
    {"label": "➕ Add Task", "message": "Add task"},
    {"label": "📋 View Tasks", "message": "View tasks"},
    {"label": "✏️ Update", "message": "Update task"},
    {"label": "🗑️ Delete", "message": "Delete task"},
]


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def format_task_list(header: str, tasks: list[Task]) -> str:
    """Number tasks 1..N in the order given, under a header line."""
    message = header + "\n\n"
    for index, task in enumerate(tasks, start=1):
        status = "✅" if task.completed else "⏳"
        message += (
            f"{index}. {status} {task.title}\n"
            f"   📅 {task.due_date} at {task.due_time}\n"
            f"   ⚡ {task.priority}\n\n"
        )
    return message.strip()


def format_task_summary(heading: str, task: Task) -> str:
    return (
        f"{heading}\n\n"
        f"📝 {task.title}\n"
        f"📅 {task.due_date} at {task.due_time}\n"
        f"⚡ Priority: {task.priority}\n"
        f"🔔 Reminder: {_yes_no(task.reminder)}"
    )


def task_created_message(task: Task) -> str:
    return format_task_summary("✅ Task created!", task) + "\n\nAnything else I can help with?"


def task_updated_message(task: Task) -> str:
    return format_task_summary("✅ Task updated!", task)


def task_toggled_message(completed: bool) -> str:
    return f"✅ Task marked as {'complete' if completed else 'incomplete'}!"


def task_deleted_message(task: Task) -> str:
    return f'✅ Task deleted: "{task.title}"'


def field_menu(task: Task) -> str:
    return FIELD_MENU.format(toggle="incomplete" if task.completed else "complete")
