"""create_tour_tables

Revision ID: a1c3e5f7b9d0
Revises:
Create Date: 2026-10-19 10:00:00.000000

투어 예약 스키마 생성: users, tours, tour_guides, reviews, bookings.
Create the tour booking schema: users, tours, tour_guides, reviews, bookings.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = 'a1c3e5f7b9d0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # users — 사용자 계정 (email unique, soft delete via active)
    op.create_table(
        'users',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('photo', sa.String(255), server_default='default.jpg', nullable=False),
        sa.Column('role', sa.String(20), server_default='user', nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('password_changed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('password_reset_token', sa.String(64), nullable=True),
        sa.Column('password_reset_expires', sa.DateTime(timezone=True), nullable=True),
        sa.Column('active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # tours — 투어 상품 (GeoJSON and image lists as JSON)
    op.create_table(
        'tours',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(40), nullable=False, unique=True),
        sa.Column('slug', sa.String(60), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('max_group_size', sa.Integer(), nullable=False),
        sa.Column('difficulty', sa.String(20), nullable=False),
        sa.Column('ratings_average', sa.Float(), server_default='4.5', nullable=False),
        sa.Column('ratings_quantity', sa.Integer(), server_default='0', nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('price_discount', sa.Float(), nullable=True),
        sa.Column('summary', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('image_cover', sa.String(255), nullable=False),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('start_dates', sa.JSON(), nullable=False),
        sa.Column('premium_tour', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('start_location', sa.JSON(), nullable=True),
        sa.Column('locations', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # 투어 인덱스 — Tour indexes (price/rating sort, slug lookup)
    op.create_index('ix_tours_price_ratings', 'tours', ['price', 'ratings_average'])
    op.create_index('ix_tours_slug', 'tours', ['slug'])

    # tour_guides — 투어-가이드 연결 (many-to-many)
    op.create_table(
        'tour_guides',
        sa.Column('tour_id', UUID(as_uuid=True), sa.ForeignKey('tours.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
    )

    # reviews — 리뷰 (one per tour per user)
    op.create_table(
        'reviews',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('review', sa.String(50), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('tour_id', UUID(as_uuid=True), sa.ForeignKey('tours.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.UniqueConstraint('tour_id', 'user_id', name='uq_review_tour_user'),
    )

    # bookings — 결제 완료 예약 (paid bookings)
    op.create_table(
        'bookings',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('tour_id', UUID(as_uuid=True), sa.ForeignKey('tours.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('paid', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table('bookings')
    op.drop_table('reviews')
    op.drop_table('tour_guides')
    op.drop_index('ix_tours_slug', table_name='tours')
    op.drop_index('ix_tours_price_ratings', table_name='tours')
    op.drop_table('tours')
    op.drop_table('users')
