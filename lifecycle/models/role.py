import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lifecycle.database import Base
from lifecycle.db_types import UUIDType

if TYPE_CHECKING:
    from lifecycle.models.profile import Profile


class AppRole(str, Enum):
    """
    The two roles of the system.
    A subject without an ADMIN assignment is an ordinary USER.
    """
    ADMIN = "admin"
    USER = "user"


class UserRole(Base):
    """
    Role assignment for a subject.
    Rows are only ever inserted or removed, never updated.
    """
    __tablename__ = "user_roles"
    __table_args__ = (
        UniqueConstraint("user_id", "role", name="uq_user_roles_user_id_role"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=AppRole.USER.value,
        comment="admin, user"
    )

    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    profile: Mapped["Profile"] = relationship("Profile", back_populates="user_roles")

    def __repr__(self) -> str:
        return f"<UserRole(user_id='{self.user_id}', role='{self.role}')>"
