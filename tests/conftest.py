"""Shared pytest fixtures for testing."""

import os
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID, uuid4

import pytest

# Set test environment (core.config 가 읽기 전에)
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "0"
os.environ["METRICS_TZ"] = "UTC"

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from zoneinfo import ZoneInfo

from core import dates
from database.base import Base
import models  # noqa: F401  (테이블 등록)
from models.chat import Chatbot
from service.conversation_source import ConversationRecord


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across threads (TestClient)."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def chatbot(db_session) -> Chatbot:
    bot = Chatbot(id=uuid4(), name="support-bot")
    db_session.add(bot)
    db_session.commit()
    return bot


@pytest.fixture
def reference_tz(monkeypatch):
    """Switch the METRICS_TZ reference zone for one test."""
    def _use(name: str):
        monkeypatch.setattr(dates, "TZ", ZoneInfo(name))

    return _use


# =============================================================================
# API Fixtures
# =============================================================================


@pytest.fixture
def client(db_session):
    from fastapi.testclient import TestClient

    from database.session import get_db
    from main import app

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    # lifespan(스케줄러)은 띄우지 않는다
    yield TestClient(app)
    app.dependency_overrides.clear()


# =============================================================================
# Conversation source fake
# =============================================================================


class FakeConversationSource:
    """In-memory stand-in for the chat platform's conversation/message tables."""

    def __init__(self):
        self.conversations: List[ConversationRecord] = []
        self.message_counts: Dict[UUID, int] = {}
        self.queries: List[dict] = []
        self.categories: List[dict] = []

    def add_conversation(
        self,
        chatbot_id: UUID,
        started_at: datetime,
        *,
        session_id: str = "session-1",
        messages: int = 0,
        ended_at: Optional[datetime] = None,
    ) -> ConversationRecord:
        record = ConversationRecord(
            id=uuid4(),
            chatbot_id=chatbot_id,
            session_id=session_id,
            started_at=started_at,
            ended_at=ended_at,
        )
        self.conversations.append(record)
        self.message_counts[record.id] = messages
        return record

    def list_conversations(self, chatbot_id, start, end):
        return [
            c for c in self.conversations
            if c.chatbot_id == chatbot_id and start <= c.started_at <= end
        ]

    def get_conversation(self, conversation_id):
        return next((c for c in self.conversations if c.id == conversation_id), None)

    def count_messages(self, conversation_ids):
        return {cid: self.message_counts.get(cid, 0) for cid in conversation_ids}

    def popular_queries(self, conversation_ids):
        return list(self.queries)

    def response_categories(self, conversation_ids):
        return list(self.categories)

    def list_active_chatbots(self, start, end):
        seen = []
        for c in self.conversations:
            if start <= c.started_at <= end and c.chatbot_id not in seen:
                seen.append(c.chatbot_id)
        return seen


@pytest.fixture
def source() -> FakeConversationSource:
    return FakeConversationSource()


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)
