"""Unit tests for the SQL conversation source and message classification."""

from uuid import uuid4

from conftest import utc
from models.chat import Conversation, Message
from service.conversation_source import (
    SqlConversationSource,
    categorize,
    categorize_responses,
    rank_query_words,
)


class TestClassification:
    """Tests for query ranking and response categories."""

    def test_rank_query_words(self):
        ranked = rank_query_words(["Where is my order?", "Cancel my ORDER please", "hi"])
        assert ranked[0] == {"query": "order", "count": 2}
        assert {"query": "where", "count": 1} in ranked
        # 4글자 미만 단어 제외
        assert all(len(r["query"]) >= 4 for r in ranked)

    def test_rank_query_words_limit(self):
        ranked = rank_query_words(["alpha bravo charlie delta"], limit=2)
        assert ranked == [{"query": "alpha", "count": 1}, {"query": "bravo", "count": 1}]

    def test_categorize_first_match_wins(self):
        assert categorize("Here are the details you asked for") == "Informational"
        assert categorize("I can help with your payment") == "Support"
        assert categorize("Your order has shipped") == "Transactional"
        assert categorize("Hello there!") == "Conversational"
        assert categorize("Sure.") == "Other"

    def test_categorize_responses_percentages(self):
        result = categorize_responses(["Your order is ready", "Thanks!", "Order cancelled"])
        assert result[0] == {"category": "Transactional", "count": 2, "percentage": 66.67}
        assert result[1] == {"category": "Conversational", "count": 1, "percentage": 33.33}

    def test_no_responses(self):
        assert categorize_responses([]) == []


class TestSqlConversationSource:
    """Tests for reading the chat platform tables."""

    def _seed(self, db, chatbot_id):
        conv = Conversation(
            id=uuid4(), chatbot_id=chatbot_id, session_id="s-1",
            started_at=utc(2025, 1, 1, 9), ended_at=utc(2025, 1, 1, 9, 10),
        )
        db.add(conv)
        db.add_all([
            Message(conversation_id=conv.id, role="user", content="Track my order", created_at=utc(2025, 1, 1, 9, 1)),
            Message(conversation_id=conv.id, role="assistant", content="Your order ships today",
                    created_at=utc(2025, 1, 1, 9, 2)),
            Message(conversation_id=conv.id, role="user", content="Thanks", created_at=utc(2025, 1, 1, 9, 3)),
        ])
        db.commit()
        return conv

    def test_reads_conversations_and_messages(self, db_session, chatbot):
        conv = self._seed(db_session, chatbot.id)
        src = SqlConversationSource(db_session)

        listed = src.list_conversations(chatbot.id, utc(2025, 1, 1), utc(2025, 1, 1, 23, 59))
        assert [c.id for c in listed] == [conv.id]
        assert src.count_messages([conv.id]) == {conv.id: 3}
        assert src.get_conversation(conv.id).session_id == "s-1"
        assert src.get_conversation(uuid4()) is None

    def test_queries_and_categories(self, db_session, chatbot):
        conv = self._seed(db_session, chatbot.id)
        src = SqlConversationSource(db_session)

        queries = src.popular_queries([conv.id])
        assert {"query": "order", "count": 1} in queries
        assert src.response_categories([conv.id]) == [
            {"category": "Transactional", "count": 1, "percentage": 100.0}
        ]

    def test_active_chatbots(self, db_session, chatbot):
        self._seed(db_session, chatbot.id)
        src = SqlConversationSource(db_session)

        assert src.list_active_chatbots(utc(2025, 1, 1), utc(2025, 1, 1, 23, 59)) == [chatbot.id]
        assert src.list_active_chatbots(utc(2025, 2, 1), utc(2025, 2, 1, 23, 59)) == []
