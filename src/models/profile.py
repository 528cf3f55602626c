"""Profile ORM model mirroring the external identity provider's users."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel


class Profile(Base, BaseModel):
    """Display data for a person known to the identity provider.

    Authentication happens upstream; this table only holds what the ledger
    needs to show (names on balance sheets and reports).
    """

    __tablename__ = "profiles"

    name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Display name",
    )
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        comment="URL returned by the object store",
    )

    memberships: Mapped[list["UnitMember"]] = relationship(  # noqa: F821
        "UnitMember",
        back_populates="profile",
        foreign_keys="UnitMember.user_id",
    )

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, name={self.name!r})>"


__all__ = ["Profile"]
