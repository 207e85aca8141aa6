from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship, validates

from ..database import Base
from ..enums import Role
from ..utils.timeutil import utcnow
from ..utils.validation import normalize_url

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500


class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    owner_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(NAME_MAX_LENGTH), nullable=False, index=True)
    description = Column(String(DESCRIPTION_MAX_LENGTH), nullable=True)
    website = Column(String(255), nullable=True)
    logo_url = Column(String(500), nullable=True)
    location = Column(String(200), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    owner = relationship("User", back_populates="companies")
    # Deleting a company removes its jobs (and through them, their applications).
    jobs = relationship("Job", back_populates="company", cascade="all, delete-orphan")

    @validates("name")
    def _validate_name(self, key, value):  # noqa: ANN001
        value = (value or "").strip()
        if len(value) < NAME_MIN_LENGTH or len(value) > NAME_MAX_LENGTH:
            raise ValueError(
                f"Company name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters."
            )
        return value

    @validates("description")
    def _validate_description(self, key, value):  # noqa: ANN001
        if value is None:
            return None
        value = value.strip()
        if len(value) > DESCRIPTION_MAX_LENGTH:
            raise ValueError(f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters.")
        return value or None

    @validates("website")
    def _validate_website(self, key, value):  # noqa: ANN001
        try:
            return normalize_url(value)
        except ValueError:
            raise ValueError("Invalid website URL format") from None

    @validates("logo_url")
    def _validate_logo_url(self, key, value):  # noqa: ANN001
        try:
            return normalize_url(value)
        except ValueError:
            raise ValueError("Invalid logo URL format") from None

    def update_logo_url(self, url: str | None) -> None:
        self.logo_url = url

    def validate_owner(self, owner) -> None:  # noqa: ANN001
        if owner is None:
            raise ValueError("Company owner does not exist.")
        if owner.role_enum != Role.EMPLOYER:
            raise ValueError("Company owner must be an employer.")

    def __repr__(self) -> str:
        return f"<Company(id={self.id}, name={self.name})>"
