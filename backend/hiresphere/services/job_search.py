"""Shared job query building for the job and home routers."""
from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from ..enums import JobType
from ..models.job import Job
from ..utils.timeutil import utcnow


def open_jobs_filter(query: Query) -> Query:
    """Active and not yet expired."""
    return query.filter(Job.is_active.is_(True), Job.expires_at > utcnow())


def search_jobs(
    db: Session,
    *,
    title: str | None = None,
    search: str | None = None,
    company_id: int | None = None,
    category_id: int | None = None,
    job_type: str | None = None,
    is_remote: bool | None = None,
    min_salary: float | None = None,
    max_salary: float | None = None,
    location: str | None = None,
    is_active: bool | None = None,
    open_only: bool = False,
) -> Query:
    q = db.query(Job)

    if title and title.strip():
        q = q.filter(Job.title.ilike(f"%{title.strip()}%"))
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        q = q.filter(or_(Job.title.ilike(pattern), Job.description.ilike(pattern)))
    if company_id is not None:
        q = q.filter(Job.company_id == company_id)
    if category_id is not None:
        q = q.filter(Job.category_id == category_id)
    if job_type and job_type.strip():
        q = q.filter(Job.job_type == JobType.parse(job_type).value)
    if is_remote is not None:
        q = q.filter(Job.is_remote.is_(is_remote))
    # A salary bound matches if either end of the job's range satisfies it.
    if min_salary is not None:
        q = q.filter(or_(Job.salary_from >= min_salary, Job.salary_to >= min_salary))
    if max_salary is not None:
        q = q.filter(or_(Job.salary_from <= max_salary, Job.salary_to <= max_salary))
    if location and location.strip():
        q = q.filter(Job.location.ilike(f"%{location.strip()}%"))
    if is_active is not None:
        q = q.filter(Job.is_active.is_(is_active))
    if open_only:
        q = open_jobs_filter(q)

    return q
