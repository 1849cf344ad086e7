"""
Initial circulation schema: users, books, book_copies, loans, reservations.

Includes the partial unique indexes that keep at most one open loan
(ACTIVE/OVERDUE) and at most one PENDING reservation per copy.

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum("ADMIN", "LIBRARIAN", "STUDENT", name="user_role")
copy_status = sa.Enum(
    "AVAILABLE", "BORROWED", "RESERVED", "MAINTENANCE", "LOST", "DELETED",
    name="copy_status",
)
loan_status = sa.Enum("ACTIVE", "OVERDUE", "RETURNED", name="loan_status")
reservation_status = sa.Enum(
    "PENDING", "FULFILLED", "CANCELLED", "EXPIRED",
    name="reservation_status",
)

OPEN_LOAN_CLAUSE = sa.text("status IN ('ACTIVE', 'OVERDUE')")
PENDING_CLAUSE = sa.text("status = 'PENDING'")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "books",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("isbn", sa.String(20), nullable=False, unique=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("author", sa.String(255), nullable=False),
        sa.Column("publisher", sa.String(255), nullable=True),
        sa.Column("published_year", sa.Integer(), nullable=True),
        sa.Column("page_count", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "book_copies",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("code", sa.String(64), nullable=False, unique=True),
        sa.Column(
            "book_id",
            sa.Uuid(),
            sa.ForeignKey("books.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("status", copy_status, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_book_copies_book_id", "book_copies", ["book_id"])
    op.create_index("ix_book_copies_status", "book_copies", ["status"])

    op.create_table(
        "loans",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "copy_id",
            sa.Uuid(),
            sa.ForeignKey("book_copies.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("loan_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("return_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", loan_status, nullable=False),
        sa.Column("fine", sa.Numeric(10, 2), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_loans_user_status", "loans", ["user_id", "status"])
    op.create_index("ix_loans_copy_id", "loans", ["copy_id"])
    op.create_index("ix_loans_status_due_date", "loans", ["status", "due_date"])
    op.create_index(
        "uq_loans_copy_open",
        "loans",
        ["copy_id"],
        unique=True,
        postgresql_where=OPEN_LOAN_CLAUSE,
        sqlite_where=OPEN_LOAN_CLAUSE,
    )

    op.create_table(
        "reservations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "copy_id",
            sa.Uuid(),
            sa.ForeignKey("book_copies.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("reservation_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expiration_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", reservation_status, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_reservations_user_status", "reservations", ["user_id", "status"])
    op.create_index("ix_reservations_copy_id", "reservations", ["copy_id"])
    op.create_index(
        "ix_reservations_status_expiration",
        "reservations",
        ["status", "expiration_date"],
    )
    op.create_index(
        "uq_reservations_copy_pending",
        "reservations",
        ["copy_id"],
        unique=True,
        postgresql_where=PENDING_CLAUSE,
        sqlite_where=PENDING_CLAUSE,
    )


def downgrade() -> None:
    op.drop_table("reservations")
    op.drop_table("loans")
    op.drop_table("book_copies")
    op.drop_table("books")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (reservation_status, loan_status, copy_status, user_role):
        enum_type.drop(bind, checkfirst=True)
