import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from insightflow.shared.infrastructure.database import Base


def _new_id() -> str:
    return uuid.uuid4().hex


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(50), nullable=True)
    status = Column(String(20), nullable=False, default="Active")
    avatar_url = Column(String(1024), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class Workspace(Base):
    __tablename__ = "workspaces"

    id = Column(String(64), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    owner_id = Column(String(64), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    dashboards = relationship("Dashboard", back_populates="workspace", cascade="all, delete-orphan")
    data_sources = relationship("DataSource", back_populates="workspace", cascade="all, delete-orphan")
    saved_queries = relationship("SavedQuery", back_populates="workspace", cascade="all, delete-orphan")


class Dashboard(Base):
    __tablename__ = "dashboards"

    id = Column(String(64), primary_key=True, default=_new_id)
    workspace_id = Column(String(64), ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    widgets = Column(JSON, nullable=False, default=list)
    filters = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    workspace = relationship("Workspace", back_populates="dashboards")

    __table_args__ = (
        Index("dashboard_workspace_idx", "workspace_id"),
    )


class DataSource(Base):
    """Named connection plus its refresh schedule. Secrets inside `connection` are encrypted."""
    __tablename__ = "data_sources"

    id = Column(String(64), primary_key=True, default=_new_id)
    workspace_id = Column(String(64), ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False)
    connection = Column(JSON, nullable=False, default=dict)
    status = Column(String(20), nullable=False, default="connected")
    schedule = Column(JSON, nullable=False, default=dict)
    last_error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    workspace = relationship("Workspace", back_populates="data_sources")

    __table_args__ = (
        Index("data_source_workspace_idx", "workspace_id"),
    )


class SavedQuery(Base):
    __tablename__ = "saved_queries"

    id = Column(String(64), primary_key=True, default=_new_id)
    workspace_id = Column(String(64), ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    sql = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    last_run_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    workspace = relationship("Workspace", back_populates="saved_queries")


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(String(64), primary_key=True, default=_new_id)
    timestamp = Column(DateTime, nullable=False, index=True)
    user_id = Column(String(64), nullable=True)
    user_name = Column(String(255), nullable=False)
    action = Column(String(100), nullable=False)
    details = Column(Text, nullable=False, default="")
