from .category import Category
from .company import Company
from .job import Job
from .job_application import JobApplication
from .password_reset_token import PasswordResetToken
from .refresh_token import RefreshToken
from .user import User

__all__ = [
    "Category",
    "Company",
    "Job",
    "JobApplication",
    "PasswordResetToken",
    "RefreshToken",
    "User",
]
