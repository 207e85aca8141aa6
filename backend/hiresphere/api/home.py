import logging
import math

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.category import Category
from ..models.company import Company
from ..models.job import Job
from ..services.job_search import open_jobs_filter, search_jobs
from .job import _job_to_public

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/home", tags=["Home"])

RECENT_JOBS_LIMIT = 10
FEATURED_JOBS_LIMIT = 6
MAX_PAGE_SIZE = 100


def _recent_jobs(db: Session, limit: int = RECENT_JOBS_LIMIT) -> list[Job]:
    return open_jobs_filter(db.query(Job)).order_by(Job.posted_at.desc()).limit(limit).all()


def _featured_jobs(db: Session, limit: int = FEATURED_JOBS_LIMIT) -> list[Job]:
    # Best-paid open jobs first; unknown salaries sort last.
    return (
        open_jobs_filter(db.query(Job))
        .order_by(Job.salary_to.is_(None), Job.salary_to.desc(), Job.posted_at.desc())
        .limit(limit)
        .all()
    )


def _statistics(db: Session) -> dict:
    return {
        "total_jobs": open_jobs_filter(db.query(func.count(Job.id))).scalar() or 0,
        "total_companies": db.query(func.count(Company.id)).scalar() or 0,
        "total_categories": db.query(func.count(Category.id)).scalar() or 0,
    }


@router.get("")
def home(db: Session = Depends(get_db)):
    categories = db.query(Category).order_by(Category.name).all()
    return {
        "success": True,
        "recent_jobs": [_job_to_public(j) for j in _recent_jobs(db)],
        "featured_jobs": [_job_to_public(j) for j in _featured_jobs(db)],
        "statistics": _statistics(db),
        "categories": [{"id": c.id, "name": c.name, "slug": c.slug} for c in categories],
    }


@router.get("/jobs")
def browse_jobs(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=MAX_PAGE_SIZE),
    search: str | None = Query(default=None),
    location: str | None = Query(default=None),
    job_type: str | None = Query(default=None),
    category_id: int | None = Query(default=None),
    is_remote: bool | None = Query(default=None),
    db: Session = Depends(get_db),
):
    q = search_jobs(
        db,
        search=search,
        location=location,
        job_type=job_type,
        category_id=category_id,
        is_remote=is_remote,
        open_only=True,
    )
    total = q.count()
    jobs = q.order_by(Job.posted_at.desc()).offset((page - 1) * page_size).limit(page_size).all()
    return {
        "success": True,
        "jobs": [_job_to_public(j) for j in jobs],
        "page": page,
        "page_size": page_size,
        "total_count": total,
        "total_pages": math.ceil(total / page_size) if total else 0,
    }


@router.get("/featured-jobs")
def featured_jobs(db: Session = Depends(get_db)):
    return {"success": True, "jobs": [_job_to_public(j) for j in _featured_jobs(db)]}
