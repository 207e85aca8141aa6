import json
from datetime import timedelta

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship, validates

from ..database import Base
from ..enums import JobType
from ..utils.timeutil import ensure_utc, utcnow

DEFAULT_EXPIRATION_DAYS = 30


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    requirements = Column(Text, nullable=True)
    salary_from = Column(Float, nullable=True)
    salary_to = Column(Float, nullable=True)
    location = Column(String(200), nullable=True)
    job_type = Column(String(20), nullable=False, default=JobType.FULL_TIME.value)
    is_remote = Column(Boolean, nullable=False, default=False)
    tags_json = Column("tags", Text, nullable=True)  # JSON string list
    posted_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    company = relationship("Company", back_populates="jobs")
    category = relationship("Category", back_populates="jobs")
    applications = relationship("JobApplication", back_populates="job", cascade="all, delete-orphan")

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.posted_at is None:
            self.posted_at = utcnow()
        if self.expires_at is None:
            self.expires_at = ensure_utc(self.posted_at) + timedelta(days=DEFAULT_EXPIRATION_DAYS)
        if self.is_active is None:
            self.is_active = True
        if self.is_remote is None:
            self.is_remote = False
        if self.job_type is None:
            self.job_type = JobType.FULL_TIME.value

    @validates("job_type")
    def _validate_job_type(self, key, value):  # noqa: ANN001
        return JobType.parse(value).value

    @property
    def tags(self) -> list[str]:
        if not self.tags_json:
            return []
        try:
            data = json.loads(self.tags_json)
        except (TypeError, ValueError):
            return []
        return [str(t) for t in data] if isinstance(data, list) else []

    @tags.setter
    def tags(self, value) -> None:  # noqa: ANN001
        cleaned = [str(t).strip() for t in (value or []) if str(t).strip()]
        self.tags_json = json.dumps(cleaned) if cleaned else None

    @property
    def is_expired(self) -> bool:
        expires_at = ensure_utc(self.expires_at)
        return expires_at is not None and utcnow() >= expires_at

    @property
    def accepts_applications(self) -> bool:
        return bool(self.is_active) and not self.is_expired

    def validate(self) -> None:
        title = (self.title or "").strip()
        if len(title) < 2:
            raise ValueError("Title is required and must be at least 2 characters long.")
        description = (self.description or "").strip()
        if len(description) < 10:
            raise ValueError("Description is required and must be at least 10 characters long.")
        if (
            self.salary_from is not None
            and self.salary_to is not None
            and self.salary_from > self.salary_to
        ):
            raise ValueError("Salary 'from' cannot be greater than salary 'to'.")
        if ensure_utc(self.expires_at) <= ensure_utc(self.posted_at):
            raise ValueError("Job expiration date must be after the posting date.")
        JobType.parse(self.job_type)

    def activate(self) -> None:
        if self.is_expired:
            raise ValueError("Cannot activate an expired job.")
        self.is_active = True

    def deactivate(self) -> None:
        self.is_active = False

    def extend_expiration(self, days: int) -> None:
        if days is None or days <= 0:
            raise ValueError("Extension days must be positive.")
        self.expires_at = ensure_utc(self.expires_at) + timedelta(days=days)

    def __repr__(self) -> str:
        return f"<Job(id={self.id}, title={self.title}, active={self.is_active})>"
