"""
Atelier Backend — Profile SQLAlchemy Model
============================================

What:  ORM model for the `profiles` table: clients, assistants and the admin.
Who:   Read by the cron jobs (reminder and birthday recipients) and the Square
       webhook processor (receipt recipient).

Only the columns the backend reads or writes are mapped here; the onboarding
answers live in `onboarding_data` (JSONB), including `birthday` as "MM/DD".
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import Boolean, String, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from atelier.database import Base

# Values: admin, assistant, client
ROLE_CLIENT = "client"


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ROLE_CLIENT,
        server_default=text("'client'"),
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    # Client opted in to transactional / reminder email
    notify_email: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    onboarding_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONB, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, role='{self.role}', email='{self.email}')>"
