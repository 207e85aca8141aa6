from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship, validates

from ..database import Base
from ..enums import Role
from ..utils.timeutil import utcnow
from ..utils.validation import is_valid_email, is_valid_phone


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(100), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)  # bcrypt hash
    role = Column(Integer, nullable=False, default=int(Role.JOB_SEEKER))  # Role enum value
    name = Column(String(50), nullable=False, default="")
    surname = Column(String(50), nullable=False, default="")
    phone = Column(String(30), nullable=True)
    is_email_confirmed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    companies = relationship("Company", back_populates="owner", cascade="all, delete-orphan")
    applications = relationship("JobApplication", back_populates="applicant", cascade="all, delete-orphan")
    refresh_tokens = relationship("RefreshToken", back_populates="user", cascade="all, delete-orphan")
    password_reset_tokens = relationship("PasswordResetToken", back_populates="user", cascade="all, delete-orphan")

    @validates("email")
    def _validate_email(self, key, value):  # noqa: ANN001
        value = (value or "").strip().lower()
        if not is_valid_email(value):
            raise ValueError("Invalid email format.")
        return value

    @validates("password_hash")
    def _validate_password_hash(self, key, value):  # noqa: ANN001
        if not value or not str(value).strip():
            raise ValueError("Password hash cannot be empty.")
        return value

    @validates("role")
    def _validate_role(self, key, value):  # noqa: ANN001
        return int(Role.parse(value))

    @validates("phone")
    def _validate_phone(self, key, value):  # noqa: ANN001
        if value is None or not str(value).strip():
            return None
        if not is_valid_phone(value):
            raise ValueError("Invalid phone number format.")
        return value.strip()

    @property
    def role_enum(self) -> Role:
        return Role(self.role if self.role is not None else Role.JOB_SEEKER)

    @property
    def full_name(self) -> str:
        return f"{self.name or ''} {self.surname or ''}".strip()

    def has_role(self, *roles: Role) -> bool:
        return self.role_enum in roles

    def change_email(self, new_email: str) -> None:
        """Switching address drops the confirmation until the new one is confirmed."""
        self.email = new_email
        self.is_email_confirmed = False

    def change_password_hash(self, password_hash: str) -> None:
        self.password_hash = password_hash

    def confirm_email(self) -> None:
        self.is_email_confirmed = True

    def validate(self) -> None:
        for label, value in (("Name", self.name), ("Surname", self.surname)):
            value = (value or "").strip()
            if len(value) < 2 or len(value) > 50:
                raise ValueError(f"{label} must be between 2 and 50 characters.")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role_enum.label})>"
