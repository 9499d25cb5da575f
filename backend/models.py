from enum import Enum
from pydantic import BaseModel
from typing import Literal, Optional

Priority = Literal["High", "Medium", "Low"]
UpdateField = Literal["title", "date/time", "priority", "reminder"]


class IncompleteDraftError(ValueError):
    """Raised when a task draft is finalized before all fields are known."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Task draft is missing: {', '.join(missing)}")


class ConversationState(str, Enum):
    IDLE = "idle"
    ADDING_TITLE = "adding-task-title"
    ADDING_DATE = "adding-task-date"
    ADDING_PRIORITY = "adding-task-priority"
    ADDING_REMINDER = "adding-task-reminder"
    UPDATING_SELECT = "updating-task-select"
    UPDATING_FIELD = "updating-task-field"
    DELETING_SELECT = "deleting-task-select"
    CONFIRMING_ACTION = "confirming-action"


class Task(BaseModel):
    id: str
    title: str
    due_date: str  # display string, e.g. 10/19/2026 or Dec 25
    due_time: str  # 24-hour H:MM, or 9:00 AM when no time was given
    priority: Priority = "Medium"
    reminder: bool = False
    completed: bool = False
    created_at: str  # ISO format datetime string


class TaskDraft(BaseModel):
    """Fields collected so far by the add flow."""
    title: Optional[str] = None
    due_date: Optional[str] = None
    due_time: Optional[str] = None
    priority: Optional[Priority] = None

    def missing_fields(self) -> list[str]:
        return [name for name, value in self.model_dump().items() if value is None]

    def to_task(self, task_id: str, reminder: bool, created_at: str) -> Task:
        missing = self.missing_fields()
        if missing:
            raise IncompleteDraftError(missing)
        return Task(
            id=task_id,
            title=self.title,
            due_date=self.due_date,
            due_time=self.due_time,
            priority=self.priority,
            reminder=reminder,
            completed=False,
            created_at=created_at,
        )


class ConversationContext(BaseModel):
    state: ConversationState = ConversationState.IDLE
    current_task: Optional[TaskDraft] = None  # add flow only
    selected_task_id: Optional[str] = None  # update/delete flows
    update_field: Optional[UpdateField] = None  # confirming-action only


class AssistantReply(BaseModel):
    response: str
    new_context: ConversationContext
    updated_tasks: Optional[list[Task]] = None  # None means the task list is unchanged


class Message(BaseModel):
    id: str
    text: str
    sender: Literal["user", "assistant"]
    timestamp: str  # ISO format datetime string


class ChatRequest(BaseModel):
    message: str


class ChatResponse(BaseModel):
    response: str
    context: ConversationContext
    tasks: list[Task]
    messages: list[Message]


class Conversation(BaseModel):
    id: int
    messages: list[Message]
    context: ConversationContext


class QuickAction(BaseModel):
    label: str
    message: str
