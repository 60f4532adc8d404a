"""
Application user directory.

Rows are synced from the identity provider by the host application;
this service only reads them. The audit read path joins this table
to show who performed an action without trusting the copy stored on
the log row.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from cylinder_audit.models.base import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    username: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    role: Mapped[str | None] = mapped_column(String(50), nullable=True)

    @property
    def full_name(self) -> str | None:
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or None

    def __repr__(self) -> str:
        return f"<User {self.username or self.email}>"
