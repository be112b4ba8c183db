import re
from uuid import uuid4

import databases
import sqlalchemy
from eventapi.config import config

metadata = sqlalchemy.MetaData()

ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


def new_id() -> str:
    return uuid4().hex


def is_valid_id(value) -> bool:
    return isinstance(value, str) and ID_PATTERN.match(value) is not None


user_table = sqlalchemy.Table(
    "user",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True),
    sqlalchemy.Column("email", sqlalchemy.String, unique=True),
    sqlalchemy.Column("username", sqlalchemy.String),
    sqlalchemy.Column("password_hash", sqlalchemy.String, nullable=False),
    sqlalchemy.Column("role", sqlalchemy.String(32), nullable=False, default="user"),
)

form_table = sqlalchemy.Table(
    "form",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.String(32), primary_key=True),
    sqlalchemy.Column("title", sqlalchemy.String(256), nullable=False),
    sqlalchemy.Column("description", sqlalchemy.Text),
    sqlalchemy.Column("settings", sqlalchemy.JSON),  # {requiresLogin, redirectUrl, ...}
    sqlalchemy.Column("is_published", sqlalchemy.Boolean, default=False),
    sqlalchemy.Column("questions", sqlalchemy.JSON, nullable=False),  # [{qId, type, text, desc, req, opts}, ...]
    sqlalchemy.Column("created_by", sqlalchemy.ForeignKey("user.id"), nullable=True),
    sqlalchemy.Column("response_count", sqlalchemy.Integer, default=0),
    sqlalchemy.Column("created_at", sqlalchemy.DateTime(timezone=True), nullable=False),
)

response_table = sqlalchemy.Table(
    "response",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.String(32), primary_key=True),
    sqlalchemy.Column("form_id", sqlalchemy.String(32), nullable=False, index=True),
    sqlalchemy.Column("answers", sqlalchemy.JSON, nullable=False),  # {qId: answer}
    sqlalchemy.Column("submitted_by", sqlalchemy.ForeignKey("user.id"), nullable=True),
    sqlalchemy.Column("created_at", sqlalchemy.DateTime(timezone=True), nullable=False),
)

certificate_table = sqlalchemy.Table(
    "certificate",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.String(32), primary_key=True),
    sqlalchemy.Column("name", sqlalchemy.String(256), nullable=False),
    sqlalchemy.Column("description", sqlalchemy.Text),
    sqlalchemy.Column("form_id", sqlalchemy.String(32), nullable=False),
    sqlalchemy.Column("field_mapping", sqlalchemy.JSON, default={}),
    sqlalchemy.Column("template_object", sqlalchemy.String(512)),
    sqlalchemy.Column("template_filename", sqlalchemy.String(256)),
    sqlalchemy.Column("template_content_type", sqlalchemy.String(128)),
    sqlalchemy.Column("created_by", sqlalchemy.ForeignKey("user.id"), nullable=True),
    sqlalchemy.Column("created_at", sqlalchemy.DateTime(timezone=True), nullable=False),
)


engine = sqlalchemy.create_engine(
    config.DATABASE_URL, connect_args={"check_same_thread": False}
)

metadata.create_all(engine)
database = databases.Database(
    config.DATABASE_URL, force_rollback=config.DB_FORCE_ROLL_BACK
)
