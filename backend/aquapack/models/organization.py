"""Organization, project, user, and project assignment models."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from aquapack.models.base import BaseModel
from aquapack.models.enums import UserRole


class Organization(BaseModel):
    __tablename__ = "organization"

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    projects: Mapped[list["Project"]] = relationship(back_populates="organization")


class Project(BaseModel):
    __tablename__ = "project"

    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organization.id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    client: Mapped[str | None] = mapped_column(String(100), nullable=True)
    region: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, server_default="true")

    # Relationships
    organization: Mapped["Organization"] = relationship(back_populates="projects")
    assignments: Mapped[list["ProjectAssignment"]] = relationship(back_populates="project")

    __table_args__ = (
        Index("ix_project_organization", "organization_id"),
    )


class User(BaseModel):
    __tablename__ = "user"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[UserRole] = mapped_column(nullable=False)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organization.id"), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(default=True, server_default="true")

    # Relationships
    assignments: Mapped[list["ProjectAssignment"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_user_email", "email"),
        Index("ix_user_organization", "organization_id"),
    )


class ProjectAssignment(BaseModel):
    __tablename__ = "project_assignment"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("user.id"), nullable=False
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("project.id"), nullable=False
    )
    role: Mapped[UserRole] = mapped_column(nullable=False)
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    user: Mapped["User"] = relationship(back_populates="assignments")
    project: Mapped["Project"] = relationship(back_populates="assignments")

    __table_args__ = (
        UniqueConstraint("user_id", "project_id", name="uq_project_assignment"),
        Index("ix_project_assignment_user", "user_id"),
    )
