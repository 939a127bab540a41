# 대화/메시지 협력자(collaborator) 인터페이스와 SQL 구현
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol, Sequence
from uuid import UUID
import re

from sqlalchemy.orm import Session

from core.config import ANALYTICS_TOP_N
from core.stats import rank_by_frequency
from crud import chat as crud_chat


@dataclass(frozen=True)
class ConversationRecord:
    id: UUID
    chatbot_id: UUID
    session_id: str
    started_at: datetime
    ended_at: Optional[datetime] = None


class ConversationSource(Protocol):
    """집계 엔진이 의존하는 대화 데이터 읽기 능력. 테스트에서는 가짜 구현으로 대체한다."""

    def list_conversations(self, chatbot_id: UUID, start: datetime, end: datetime) -> List[ConversationRecord]: ...

    def get_conversation(self, conversation_id: UUID) -> Optional[ConversationRecord]: ...

    def count_messages(self, conversation_ids: Sequence[UUID]) -> Dict[UUID, int]: ...

    def popular_queries(self, conversation_ids: Sequence[UUID]) -> List[dict]: ...

    def response_categories(self, conversation_ids: Sequence[UUID]) -> List[dict]: ...

    def list_active_chatbots(self, start: datetime, end: datetime) -> List[UUID]: ...


# ---------- 메시지 분류 (단순 규칙 기반) ----------
_NON_WORD = re.compile(r"[^\w\s]")
MIN_QUERY_WORD_LEN = 4

# 위에서부터 먼저 매칭되는 분류 하나만 센다
CATEGORY_RULES = (
    ("Informational", ("information", "details", "about")),
    ("Support", ("help", "support", "assist")),
    ("Transactional", ("order", "purchase", "payment")),
    ("Conversational", ("hello", "how are you", "thanks")),
)
FALLBACK_CATEGORY = "Other"


def rank_query_words(user_messages: Iterable[str], limit: int = ANALYTICS_TOP_N) -> List[dict]:
    words = (
        w
        for content in user_messages
        for w in _NON_WORD.sub("", content.lower()).split()
        if len(w) >= MIN_QUERY_WORD_LEN
    )
    return [{"query": w, "count": c} for w, c in rank_by_frequency(words, limit)]


def categorize(content: str) -> str:
    text = content.lower()
    for category, keywords in CATEGORY_RULES:
        if any(k in text for k in keywords):
            return category
    return FALLBACK_CATEGORY


def categorize_responses(assistant_messages: Sequence[str]) -> List[dict]:
    total = len(assistant_messages)
    if total == 0:
        return []
    return [
        {"category": cat, "count": c, "percentage": round(c / total * 100, 2)}
        for cat, c in rank_by_frequency(categorize(m) for m in assistant_messages)
    ]


class SqlConversationSource:
    """conversation / message 테이블을 직접 읽는 기본 구현."""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _record(c) -> ConversationRecord:
        return ConversationRecord(
            id=c.id, chatbot_id=c.chatbot_id, session_id=c.session_id,
            started_at=c.started_at, ended_at=c.ended_at,
        )

    def list_conversations(self, chatbot_id, start, end):
        return [self._record(c) for c in crud_chat.list_conversations(self.db, chatbot_id, start=start, end=end)]

    def get_conversation(self, conversation_id):
        c = crud_chat.get_conversation(self.db, conversation_id)
        return self._record(c) if c else None

    def count_messages(self, conversation_ids):
        return crud_chat.count_messages(self.db, conversation_ids)

    def popular_queries(self, conversation_ids):
        return rank_query_words(crud_chat.list_message_contents(self.db, conversation_ids, role="user"))

    def response_categories(self, conversation_ids):
        return categorize_responses(crud_chat.list_message_contents(self.db, conversation_ids, role="assistant"))

    def list_active_chatbots(self, start, end):
        return crud_chat.list_active_chatbot_ids(self.db, start=start, end=end)
