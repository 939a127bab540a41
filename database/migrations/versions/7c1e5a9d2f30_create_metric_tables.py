"""create performance_sample / conversation_metric / daily_analytics

Revision ID: 7c1e5a9d2f30
Revises:
Create Date: 2026-10-19

chatbot / conversation / message 는 챗 플랫폼 소유 테이블이므로 여기서 만들지 않는다.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '7c1e5a9d2f30'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONB = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade() -> None:
    op.create_table(
        'performance_sample',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('chatbot_id', sa.Uuid(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('response_time', sa.Numeric(10, 3), nullable=False),
        sa.Column('token_usage', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('model_version', sa.String(128), nullable=True),
        sa.Column('endpoint', sa.String(255), nullable=True),
        sa.Column('status_code', sa.Integer(), nullable=False, server_default='200'),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('metadata', JSONB, nullable=False, server_default=sa.text("'{}'")),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['chatbot_id'], ['chatbot.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('response_time >= 0', name='chk_sample_response_time_nonneg'),
        sa.CheckConstraint('token_usage >= 0', name='chk_sample_token_usage_nonneg'),
        sa.CheckConstraint('status_code BETWEEN 100 AND 599', name='chk_sample_status_code'),
    )
    op.create_index('idx_sample_chatbot_ts', 'performance_sample', ['chatbot_id', 'timestamp'])
    op.create_index('idx_sample_ts', 'performance_sample', ['timestamp'])
    op.create_index('idx_sample_status_code', 'performance_sample', ['status_code'])

    op.create_table(
        'conversation_metric',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('conversation_id', sa.Uuid(), nullable=False),
        sa.Column('chatbot_id', sa.Uuid(), nullable=False),
        sa.Column('message_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('duration_seconds', sa.Numeric(10, 2), nullable=True),
        sa.Column('avg_response_time', sa.Numeric(10, 3), nullable=True),
        sa.Column('user_satisfaction', sa.Integer(), nullable=True),
        sa.Column('user_intent', sa.String(255), nullable=True),
        sa.Column('goal_achieved', sa.Boolean(), nullable=True),
        sa.Column('topics_discussed', JSONB, nullable=False, server_default=sa.text("'[]'")),
        sa.Column('sentiment_timeline', JSONB, nullable=False, server_default=sa.text("'[]'")),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversation.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['chatbot_id'], ['chatbot.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('conversation_id', name='uq_conversation_metric_conversation'),
        sa.CheckConstraint('message_count >= 0', name='chk_cm_message_count_nonneg'),
        sa.CheckConstraint('user_satisfaction IS NULL OR user_satisfaction BETWEEN 1 AND 5',
                           name='chk_cm_satisfaction_range'),
    )
    op.create_index('idx_cm_chatbot_created', 'conversation_metric', ['chatbot_id', 'created_at'])
    op.create_index('idx_cm_satisfaction', 'conversation_metric', ['user_satisfaction'])

    op.create_table(
        'daily_analytics',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('chatbot_id', sa.Uuid(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False, comment='METRICS_TZ 기준 날짜'),
        sa.Column('total_conversations', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_messages', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unique_users', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('avg_conversation_length', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('avg_response_time', sa.Numeric(10, 3), nullable=False, server_default='0'),
        sa.Column('user_satisfaction_score', sa.Numeric(4, 2), nullable=False, server_default='0'),
        sa.Column('total_ratings', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('popular_queries', JSONB, nullable=False, server_default=sa.text("'[]'")),
        sa.Column('response_categories', JSONB, nullable=False, server_default=sa.text("'[]'")),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['chatbot_id'], ['chatbot.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('chatbot_id', 'date', name='uq_daily_analytics_chatbot_date'),
    )
    op.create_index('idx_daily_analytics_chatbot_date', 'daily_analytics', ['chatbot_id', sa.text('date DESC')])


def downgrade() -> None:
    op.drop_index('idx_daily_analytics_chatbot_date', table_name='daily_analytics')
    op.drop_table('daily_analytics')
    op.drop_index('idx_cm_satisfaction', table_name='conversation_metric')
    op.drop_index('idx_cm_chatbot_created', table_name='conversation_metric')
    op.drop_table('conversation_metric')
    op.drop_index('idx_sample_status_code', table_name='performance_sample')
    op.drop_index('idx_sample_ts', table_name='performance_sample')
    op.drop_index('idx_sample_chatbot_ts', table_name='performance_sample')
    op.drop_table('performance_sample')
