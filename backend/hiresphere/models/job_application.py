from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship, validates

from ..database import Base
from ..enums import JobApplicationStatus
from ..services.application_status import INITIAL_STATUS, StatusTransition, change_status
from ..utils.timeutil import utcnow
from ..utils.validation import is_absolute_http_url

COVER_LETTER_MAX_LENGTH = 2000


class JobApplication(Base):
    __tablename__ = "job_applications"
    __table_args__ = (
        UniqueConstraint("job_id", "applicant_user_id", name="uq_job_applications_job_applicant"),
    )

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    applicant_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    resume_url = Column(String(500), nullable=False)
    cover_letter = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=INITIAL_STATUS.value)
    applied_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    job = relationship("Job", back_populates="applications")
    applicant = relationship("User", back_populates="applications")

    def __init__(self, **kwargs):
        # Status always starts at Applied; it only moves through change_status().
        kwargs.pop("status", None)
        super().__init__(**kwargs)
        self.status = INITIAL_STATUS.value
        if self.applied_at is None:
            self.applied_at = utcnow()

    @validates("resume_url")
    def _validate_resume_url(self, key, value):  # noqa: ANN001
        value = (value or "").strip()
        if not is_absolute_http_url(value):
            raise ValueError("Invalid resume URL format.")
        return value

    @validates("cover_letter")
    def _validate_cover_letter(self, key, value):  # noqa: ANN001
        if value is None:
            return None
        if len(value) > COVER_LETTER_MAX_LENGTH:
            raise ValueError(f"Cover letter cannot exceed {COVER_LETTER_MAX_LENGTH} characters.")
        return value

    @property
    def status_enum(self) -> JobApplicationStatus:
        return JobApplicationStatus(self.status)

    def add_cover_letter(self, text: str | None) -> None:
        if text is None or not text.strip():
            raise ValueError("Cover letter cannot be empty.")
        self.cover_letter = text

    def change_status(self, requested) -> StatusTransition:  # noqa: ANN001
        result = change_status(self.status, requested)
        if result.ok:
            self.status = result.status.value
        return result

    def __repr__(self) -> str:
        return f"<JobApplication(id={self.id}, job_id={self.job_id}, status={self.status})>"
