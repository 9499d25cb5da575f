"""
Rule-based dialogue engine for the task assistant.

Each call interprets one user message against a snapshot of the task list and the
conversation context, and returns the reply, the next context and, for turns that
change something, the new task list. Nothing is kept between calls.
"""
import logging
import uuid
from datetime import datetime
from typing import Callable, Optional, Sequence

import prompts
from models import (
    AssistantReply,
    ConversationContext,
    ConversationState,
    IncompleteDraftError,
    Task,
    TaskDraft,
)
from parsers import parse_date_time, parse_priority, parse_selection, parse_yes

logger = logging.getLogger(__name__)

State = ConversationState

# Checked in this order; the first group with a matching keyword wins.
INTENT_KEYWORDS = [
    ("add", ("add", "create", "new task")),
    ("update", ("update", "edit", "change")),
    ("delete", ("delete", "remove")),
    ("list", ("view", "show", "list", "tasks")),
]

FIELD_OPTIONS = {
    1: "title",
    2: "date/time",
    3: "priority",
    4: "reminder",
}
TOGGLE_COMPLETED_OPTION = 5


def classify_intent(text: str) -> str:
    """Map an idle-state message to add, update, delete, list or unknown."""
    lower = text.lower().strip()
    for intent, keywords in INTENT_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return intent
    return "unknown"


def _idle() -> ConversationContext:
    return ConversationContext(state=State.IDLE)


def _new_id() -> str:
    return str(uuid.uuid4())


class TaskAssistant:
    """One turn of the conversation over a snapshot of tasks and context."""

    def __init__(
        self,
        tasks: Sequence[Task],
        context: ConversationContext,
        id_factory: Callable[[], str] = _new_id,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.tasks = list(tasks)
        self.context = context
        self.id_factory = id_factory
        self.clock = clock

    def process_message(self, text: str) -> AssistantReply:
        state = self.context.state
        logger.debug("Processing message in state %s", state.value)

        handlers = {
            State.IDLE: self._handle_idle,
            State.ADDING_TITLE: self._handle_title,
            State.ADDING_DATE: self._handle_due,
            State.ADDING_PRIORITY: self._handle_priority,
            State.ADDING_REMINDER: self._handle_reminder,
            State.UPDATING_SELECT: self._handle_update_select,
            State.UPDATING_FIELD: self._handle_update_field,
            State.CONFIRMING_ACTION: self._handle_update_value,
            State.DELETING_SELECT: self._handle_delete_select,
        }
        reply = handlers[state](text)

        if reply.new_context.state != state:
            logger.debug("State %s -> %s", state.value, reply.new_context.state.value)
        return reply

    # Idle

    def _handle_idle(self, text: str) -> AssistantReply:
        intent = classify_intent(text)

        if intent == "add":
            return AssistantReply(
                response=prompts.ASK_TITLE,
                new_context=ConversationContext(state=State.ADDING_TITLE, current_task=TaskDraft()),
            )

        if intent == "update":
            if not self.tasks:
                return AssistantReply(response=prompts.NO_TASKS_TO_UPDATE, new_context=_idle())
            return AssistantReply(
                response=prompts.format_task_list(prompts.UPDATE_HEADER, self.tasks),
                new_context=ConversationContext(state=State.UPDATING_SELECT),
            )

        if intent == "delete":
            if not self.tasks:
                return AssistantReply(response=prompts.NO_TASKS_TO_DELETE, new_context=_idle())
            return AssistantReply(
                response=prompts.format_task_list(prompts.DELETE_HEADER, self.tasks),
                new_context=ConversationContext(state=State.DELETING_SELECT),
            )

        if intent == "list":
            if not self.tasks:
                return AssistantReply(response=prompts.NO_TASKS_TO_VIEW, new_context=_idle())
            return AssistantReply(
                response=prompts.format_task_list(prompts.VIEW_HEADER, self.tasks),
                new_context=_idle(),
            )

        return AssistantReply(response=prompts.HELP_MESSAGE, new_context=_idle())

    # Add flow

    def _draft(self) -> TaskDraft:
        return self.context.current_task or TaskDraft()

    def _next_add_step(self, state: State, draft: TaskDraft, response: str) -> AssistantReply:
        return AssistantReply(
            response=response,
            new_context=ConversationContext(state=state, current_task=draft),
        )

    def _handle_title(self, text: str) -> AssistantReply:
        draft = self._draft().model_copy(update={"title": text})
        return self._next_add_step(State.ADDING_DATE, draft, prompts.ASK_DUE)

    def _handle_due(self, text: str) -> AssistantReply:
        due_date, due_time = parse_date_time(text, self.clock())
        draft = self._draft().model_copy(update={"due_date": due_date, "due_time": due_time})
        return self._next_add_step(State.ADDING_PRIORITY, draft, prompts.ASK_PRIORITY)

    def _handle_priority(self, text: str) -> AssistantReply:
        draft = self._draft().model_copy(update={"priority": parse_priority(text)})
        return self._next_add_step(State.ADDING_REMINDER, draft, prompts.ASK_REMINDER)

    def _handle_reminder(self, text: str) -> AssistantReply:
        try:
            task = self._draft().to_task(
                task_id=self.id_factory(),
                reminder=parse_yes(text),
                created_at=self.clock().isoformat(),
            )
        except IncompleteDraftError as e:
            logger.warning("Discarding add flow: %s", e)
            return AssistantReply(response=prompts.FLOW_RESTART, new_context=_idle())

        logger.info("Created task %s", task.id)
        return AssistantReply(
            response=prompts.task_created_message(task),
            new_context=_idle(),
            updated_tasks=self.tasks + [task],
        )

    # Update and delete flows

    def _task_at(self, text: str) -> Optional[Task]:
        """Resolve a 1-based task number against the current order."""
        number = parse_selection(text)
        if number is None or not 1 <= number <= len(self.tasks):
            return None
        return self.tasks[number - 1]

    def _selected_task(self) -> Optional[Task]:
        task_id = self.context.selected_task_id
        return next((task for task in self.tasks if task.id == task_id), None)

    def _replace(self, updated: Task) -> list[Task]:
        return [updated if task.id == updated.id else task for task in self.tasks]

    def _task_not_found(self) -> AssistantReply:
        logger.warning("Selected task %s is no longer in the list", self.context.selected_task_id)
        return AssistantReply(response=prompts.TASK_NOT_FOUND, new_context=_idle())

    def _handle_update_select(self, text: str) -> AssistantReply:
        task = self._task_at(text)
        if task is None:
            return AssistantReply(response=prompts.INVALID_TASK_NUMBER, new_context=self.context)
        return AssistantReply(
            response=prompts.field_menu(task),
            new_context=ConversationContext(state=State.UPDATING_FIELD, selected_task_id=task.id),
        )

    def _handle_update_field(self, text: str) -> AssistantReply:
        task = self._selected_task()
        if task is None:
            return self._task_not_found()

        option = parse_selection(text)
        if option == TOGGLE_COMPLETED_OPTION:
            updated = task.model_copy(update={"completed": not task.completed})
            logger.info("Task %s completed=%s", task.id, updated.completed)
            return AssistantReply(
                response=prompts.task_toggled_message(updated.completed),
                new_context=_idle(),
                updated_tasks=self._replace(updated),
            )

        field = FIELD_OPTIONS.get(option)
        if field is None:
            return AssistantReply(response=prompts.INVALID_FIELD_NUMBER, new_context=self.context)

        return AssistantReply(
            response=prompts.ASK_NEW_VALUE.format(field=field),
            new_context=ConversationContext(
                state=State.CONFIRMING_ACTION,
                selected_task_id=task.id,
                update_field=field,
            ),
        )

    def _handle_update_value(self, text: str) -> AssistantReply:
        task = self._selected_task()
        if task is None:
            return self._task_not_found()

        field = self.context.update_field
        if field == "title":
            changes = {"title": text}
        elif field == "date/time":
            due_date, due_time = parse_date_time(text, self.clock())
            changes = {"due_date": due_date, "due_time": due_time}
        elif field == "priority":
            changes = {"priority": parse_priority(text)}
        elif field == "reminder":
            changes = {"reminder": parse_yes(text)}
        else:
            logger.warning("No field selected for task %s", task.id)
            return AssistantReply(response=prompts.FLOW_RESTART, new_context=_idle())

        updated = task.model_copy(update=changes)
        logger.info("Updated %s of task %s", field, task.id)
        return AssistantReply(
            response=prompts.task_updated_message(updated),
            new_context=_idle(),
            updated_tasks=self._replace(updated),
        )

    def _handle_delete_select(self, text: str) -> AssistantReply:
        task = self._task_at(text)
        if task is None:
            return AssistantReply(response=prompts.INVALID_TASK_NUMBER, new_context=self.context)

        logger.info("Deleted task %s", task.id)
        return AssistantReply(
            response=prompts.task_deleted_message(task),
            new_context=_idle(),
            updated_tasks=[t for t in self.tasks if t.id != task.id],
        )


def process_message(
    tasks: Sequence[Task],
    context: ConversationContext,
    text: str,
    id_factory: Callable[[], str] = _new_id,
    clock: Callable[[], datetime] = datetime.now,
) -> AssistantReply:
    """Run one conversation turn. Inputs are left untouched."""
    return TaskAssistant(tasks, context, id_factory=id_factory, clock=clock).process_message(text)
