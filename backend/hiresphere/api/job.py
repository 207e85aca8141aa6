from datetime import datetime
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, Field
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database import get_db
from ..enums import JobType
from ..models.category import Category
from ..models.company import Company
from ..models.job import Job
from ..models.user import User
from ..services.job_search import open_jobs_filter, search_jobs
from ..utils.error_handlers import commit_or_raise, get_or_404
from ..utils.roles import admin_only, employer_or_admin, ensure_company_owner_or_admin
from ..utils.timeutil import ensure_utc, isoformat, utcnow
from ..utils.validation import validate_string_field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/job", tags=["Jobs"])


def _job_to_public(job: Job) -> dict:
    return {
        "id": job.id,
        "company_id": job.company_id,
        "company_name": job.company.name if job.company else None,
        "category_id": job.category_id,
        "category_name": job.category.name if job.category else None,
        "title": job.title,
        "description": job.description,
        "requirements": job.requirements,
        "salary_from": job.salary_from,
        "salary_to": job.salary_to,
        "location": job.location,
        "job_type": job.job_type,
        "is_remote": bool(job.is_remote),
        "tags": job.tags,
        "posted_at": isoformat(job.posted_at),
        "expires_at": isoformat(job.expires_at),
        "is_active": bool(job.is_active),
        "is_expired": job.is_expired,
    }


class JobCreate(BaseModel):
    company_id: int
    category_id: int
    title: str
    description: str
    requirements: str | None = None
    salary_from: float | None = Field(default=None, ge=0)
    salary_to: float | None = Field(default=None, ge=0)
    location: str | None = None
    job_type: str = JobType.FULL_TIME.value
    is_remote: bool = False
    tags: list[str] | None = None
    expires_at: datetime | None = None


class JobUpdate(BaseModel):
    category_id: int | None = None
    title: str | None = None
    description: str | None = None
    requirements: str | None = None
    salary_from: float | None = Field(default=None, ge=0)
    salary_to: float | None = Field(default=None, ge=0)
    location: str | None = None
    job_type: str | None = None
    is_remote: bool | None = None
    tags: list[str] | None = None
    expires_at: datetime | None = None


class ExtendRequest(BaseModel):
    days: int


def _owned_job(db: Session, job_id: int, user: User) -> Job:
    job = get_or_404(db, Job, job_id, "job_not_found")
    ensure_company_owner_or_admin(user, job.company)
    return job


@router.get("")
def list_jobs(
    title: str | None = Query(default=None),
    company_id: int | None = Query(default=None),
    category_id: int | None = Query(default=None),
    job_type: str | None = Query(default=None),
    is_remote: bool | None = Query(default=None),
    min_salary: float | None = Query(default=None, ge=0),
    max_salary: float | None = Query(default=None, ge=0),
    is_active: bool | None = Query(default=None),
    db: Session = Depends(get_db),
):
    q = search_jobs(
        db,
        title=title,
        company_id=company_id,
        category_id=category_id,
        job_type=job_type,
        is_remote=is_remote,
        min_salary=min_salary,
        max_salary=max_salary,
        is_active=is_active,
    )
    jobs = q.order_by(Job.posted_at.desc()).all()
    return {"success": True, "jobs": [_job_to_public(j) for j in jobs]}


@router.get("/active")
def list_active_jobs(db: Session = Depends(get_db)):
    jobs = open_jobs_filter(db.query(Job)).order_by(Job.posted_at.desc()).all()
    return {"success": True, "jobs": [_job_to_public(j) for j in jobs]}


@router.get("/statistics")
def job_statistics(db: Session = Depends(get_db), _admin: User = Depends(admin_only)):
    now = utcnow()
    total = db.query(func.count(Job.id)).scalar() or 0
    active = db.query(func.count(Job.id)).filter(Job.is_active.is_(True), Job.expires_at > now).scalar() or 0
    expired = db.query(func.count(Job.id)).filter(Job.expires_at <= now).scalar() or 0
    remote = db.query(func.count(Job.id)).filter(Job.is_remote.is_(True)).scalar() or 0
    by_type = {t.value: 0 for t in JobType}
    for job_type, count in db.query(Job.job_type, func.count(Job.id)).group_by(Job.job_type).all():
        by_type[job_type] = count
    return {
        "success": True,
        "statistics": {
            "total_jobs": total,
            "active_jobs": active,
            "expired_jobs": expired,
            "remote_jobs": remote,
            "jobs_by_type": by_type,
        },
    }


@router.get("/{job_id:int}")
def get_job(job_id: int, db: Session = Depends(get_db)):
    job = get_or_404(db, Job, job_id, "job_not_found")
    return {"success": True, "job": _job_to_public(job)}


@router.get("/company/{company_id:int}")
def jobs_by_company(company_id: int, db: Session = Depends(get_db)):
    jobs = db.query(Job).filter(Job.company_id == company_id).order_by(Job.posted_at.desc()).all()
    return {"success": True, "jobs": [_job_to_public(j) for j in jobs]}


@router.get("/category/{category_id:int}")
def jobs_by_category(category_id: int, db: Session = Depends(get_db)):
    jobs = db.query(Job).filter(Job.category_id == category_id).order_by(Job.posted_at.desc()).all()
    return {"success": True, "jobs": [_job_to_public(j) for j in jobs]}


@router.post("", status_code=201)
def create_job(payload: JobCreate, db: Session = Depends(get_db), user: User = Depends(employer_or_admin)):
    company = get_or_404(db, Company, payload.company_id, "company_not_found")
    ensure_company_owner_or_admin(user, company)
    category = get_or_404(db, Category, payload.category_id, "category_not_found")

    location = validate_string_field(payload.location, "Location", min_length=0, max_length=200, required=False)
    job = Job(
        company_id=company.id,
        category_id=category.id,
        title=(payload.title or "").strip(),
        description=(payload.description or "").strip(),
        requirements=payload.requirements,
        salary_from=payload.salary_from,
        salary_to=payload.salary_to,
        location=location or None,
        job_type=payload.job_type,
        is_remote=payload.is_remote,
        tags=payload.tags,
        expires_at=ensure_utc(payload.expires_at),
    )
    job.validate()
    db.add(job)
    commit_or_raise(db, "creating job")
    db.refresh(job)
    logger.info("User %s posted job %s for company %s", user.id, job.id, company.id)
    return {"success": True, "job": _job_to_public(job)}


@router.put("/{job_id:int}")
def update_job(
    job_id: int,
    payload: JobUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(employer_or_admin),
):
    job = _owned_job(db, job_id, user)

    if payload.category_id is not None:
        category = get_or_404(db, Category, payload.category_id, "category_not_found")
        job.category_id = category.id
    if payload.title is not None:
        job.title = payload.title.strip()
    if payload.description is not None:
        job.description = payload.description.strip()
    if payload.requirements is not None:
        job.requirements = payload.requirements
    if payload.salary_from is not None:
        job.salary_from = payload.salary_from
    if payload.salary_to is not None:
        job.salary_to = payload.salary_to
    if payload.location is not None:
        job.location = payload.location.strip() or None
    if payload.job_type is not None:
        job.job_type = payload.job_type
    if payload.is_remote is not None:
        job.is_remote = payload.is_remote
    if payload.tags is not None:
        job.tags = payload.tags
    if payload.expires_at is not None:
        job.expires_at = ensure_utc(payload.expires_at)
    job.validate()

    commit_or_raise(db, "updating job")
    db.refresh(job)
    return {"success": True, "job": _job_to_public(job)}


@router.delete("/{job_id:int}", status_code=204)
def delete_job(job_id: int, db: Session = Depends(get_db), user: User = Depends(employer_or_admin)):
    job = _owned_job(db, job_id, user)
    db.delete(job)
    commit_or_raise(db, "deleting job")
    logger.info("User %s deleted job %s", user.id, job_id)
    return Response(status_code=204)


@router.post("/{job_id:int}/activate")
def activate_job(job_id: int, db: Session = Depends(get_db), user: User = Depends(employer_or_admin)):
    job = _owned_job(db, job_id, user)
    try:
        job.activate()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    commit_or_raise(db, "activating job")
    db.refresh(job)
    return {"success": True, "job": _job_to_public(job)}


@router.post("/{job_id:int}/deactivate")
def deactivate_job(job_id: int, db: Session = Depends(get_db), user: User = Depends(employer_or_admin)):
    job = _owned_job(db, job_id, user)
    job.deactivate()
    commit_or_raise(db, "deactivating job")
    db.refresh(job)
    return {"success": True, "job": _job_to_public(job)}


@router.post("/{job_id:int}/extend")
def extend_job(
    job_id: int,
    payload: ExtendRequest,
    db: Session = Depends(get_db),
    user: User = Depends(employer_or_admin),
):
    job = _owned_job(db, job_id, user)
    try:
        job.extend_expiration(payload.days)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    commit_or_raise(db, "extending job")
    db.refresh(job)
    return {"success": True, "job": _job_to_public(job)}
