from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Boolean,
    DateTime,
    Enum as SQLEnum,
    Index,
)
from database.engine import Base, BigIntPK
from datetime import datetime, timezone
from enum import Enum as PyEnum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ==================== User Type ===================== #
class UserType(str, PyEnum):
    JOBSEEKER = "jobseeker"  # candidate applying to jobs
    EMPLOYER = "employer"  # owns job postings and their pipelines
    ADMIN = "admin"  # platform admin with full access


class User(Base):
    """
    User identity as seen by the hiring pipeline.

    Issued and maintained by the identity service; this table is the
    lookup-by-id surface the pipeline reads names and avatars from.
    """

    __tablename__: str = "users"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    phone: Mapped[str | None] = mapped_column(String(30))
    avatar: Mapped[str | None] = mapped_column(
        String(1000), default="default-avatar.png"
    )
    linkedin: Mapped[str | None] = mapped_column(String(500))

    user_type: Mapped[UserType] = mapped_column(
        SQLEnum(
            UserType,
            native_enum=False,
            length=50,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
        default=UserType.JOBSEEKER,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (Index("idx_user_type", "user_type"),)

    @property
    def is_admin(self) -> bool:
        return self.user_type == UserType.ADMIN
