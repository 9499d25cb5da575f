from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from datetime import datetime
import logging
import threading
import uuid

from assistant import process_message
from config import Config
from models import ChatRequest, ChatResponse, Conversation, Message, QuickAction, Task
from prompts import QUICK_ACTIONS, WELCOME_MESSAGE
from database import (
    init_db,
    get_all_tasks,
    get_conversation,
    new_conversation,
    save_turn
)

logging.basicConfig(
    level=Config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# One conversation turn at a time: read, run the engine, write
turn_lock = threading.Lock()

@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Startup
    init_db()
    yield
    # Shutdown (nothing to do)

app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def make_message(text: str, sender: str) -> Message:
    return Message(
        id=str(uuid.uuid4()),
        text=text,
        sender=sender,
        timestamp=datetime.now().isoformat()
    )


def start_conversation() -> Conversation:
    """Open a new conversation greeted by the assistant."""
    return new_conversation([make_message(WELCOME_MESSAGE, "assistant")])


def current_conversation() -> Conversation:
    return get_conversation() or start_conversation()


@app.get("/tasks")
def get_tasks() -> list[Task]:
    return get_all_tasks()


@app.get("/conversation")
def get_conversation_endpoint() -> Conversation:
    """Get the active conversation, creating one on first use."""
    return current_conversation()


@app.post("/conversation")
def reset_conversation() -> Conversation:
    """Start over with a fresh conversation. Tasks are kept."""
    with turn_lock:
        conversation = start_conversation()
    logger.info("Started conversation %s", conversation.id)
    return conversation


@app.get("/quick-actions")
def get_quick_actions() -> list[QuickAction]:
    return [QuickAction(**action) for action in QUICK_ACTIONS]


@app.post("/chat")
def chat(chat_request: ChatRequest) -> ChatResponse:
    """Run one conversation turn and persist its outcome."""
    text = chat_request.message.strip()
    if not text:
        raise HTTPException(status_code=400, detail="Message must not be empty")

    with turn_lock:
        conversation = current_conversation()
        tasks = get_all_tasks()

        result = process_message(tasks, conversation.context, text)
        logger.info(
            "Conversation %s: %s -> %s",
            conversation.id,
            conversation.context.state.value,
            result.new_context.state.value
        )

        messages = conversation.messages + [
            make_message(text, "user"),
            make_message(result.response, "assistant"),
        ]
        save_turn(conversation.id, messages, result.new_context, result.updated_tasks)

    if result.updated_tasks is not None:
        tasks = result.updated_tasks

    return ChatResponse(
        response=result.response,
        context=result.new_context,
        tasks=tasks,
        messages=messages
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
