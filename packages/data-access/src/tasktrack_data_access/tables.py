"""SQLAlchemy Core table definitions.

These Table objects are used by the query builder to construct typed,
parameterized SQL. They are NOT an ORM: there's no object mapping, identity
map, or lazy loading. Just typed column references that catch typos at import
time instead of at query execution.

The same definitions create the schema on startup (`ensure_schema`), on
PostgreSQL and on SQLite alike, so ids are stored as 36-char strings rather
than a dialect-specific UUID type.
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("username", String(30), nullable=False),
    Column("email", String(254), nullable=False),
    Column("password_hash", Text, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    UniqueConstraint("username", name="uq_users_username"),
    UniqueConstraint("email", name="uq_users_email"),
)

tasks = Table(
    "tasks",
    metadata,
    Column("id", String(36), primary_key=True),
    Column(
        "user_id",
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("title", String(100), nullable=False),
    Column("description", String(500)),
    Column("completed", Boolean, nullable=False, default=False),
    Column("priority", String(10), nullable=False, default="medium"),
    Column("due_date", DateTime(timezone=True)),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    # Listing always filters by owner and sorts newest first.
    Index("ix_tasks_owner_created", "user_id", "created_at", "id"),
    Index("ix_tasks_owner_completed", "user_id", "completed"),
    Index("ix_tasks_owner_priority", "user_id", "priority"),
)
