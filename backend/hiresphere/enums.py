from enum import Enum, IntEnum


class Role(IntEnum):
    """Stored as an integer in `users.role`."""

    ADMIN = 0
    EMPLOYER = 1
    JOB_SEEKER = 2

    @property
    def label(self) -> str:
        return _ROLE_LABELS[self]

    @classmethod
    def parse(cls, value) -> "Role":  # noqa: ANN001
        if isinstance(value, Role):
            return value
        if isinstance(value, bool):
            raise ValueError("Invalid role.")
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise ValueError("Invalid role.") from None
        if isinstance(value, str):
            s = value.strip()
            if s.isdigit():
                return cls.parse(int(s))
            for role, label in _ROLE_LABELS.items():
                if s.lower() in {label.lower(), role.name.lower()}:
                    return role
        raise ValueError("Invalid role.")


_ROLE_LABELS = {
    Role.ADMIN: "Admin",
    Role.EMPLOYER: "Employer",
    Role.JOB_SEEKER: "JobSeeker",
}


class JobType(str, Enum):
    FULL_TIME = "FullTime"
    PART_TIME = "PartTime"
    CONTRACT = "Contract"
    INTERNSHIP = "Internship"
    TEMPORARY = "Temporary"

    @classmethod
    def parse(cls, value) -> "JobType":  # noqa: ANN001
        if isinstance(value, JobType):
            return value
        if isinstance(value, str):
            s = value.strip().lower()
            for member in cls:
                if s in {member.value.lower(), member.name.lower()}:
                    return member
        raise ValueError("Invalid job type.")


class JobApplicationStatus(str, Enum):
    APPLIED = "Applied"
    SCREENING = "Screening"
    INTERVIEW = "Interview"
    OFFERED = "Offered"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    WITHDRAWN = "Withdrawn"
