import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database import get_db
from ..enums import JobApplicationStatus, Role
from ..models.job import Job
from ..models.job_application import JobApplication
from ..models.user import User
from ..services.application_status import INVALID_STATUS_MESSAGE, parse_status
from ..utils.dependencies import get_current_user
from ..utils.error_handlers import commit_or_raise, get_error_message, get_or_404
from ..utils.roles import admin_only, ensure_company_owner_or_admin, ensure_self_or_admin, job_seeker_only
from ..utils.timeutil import ensure_utc, isoformat
from ..utils.validation import validate_integer_field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jobapplication", tags=["Job Applications"])


class ApplicationCreate(BaseModel):
    job_id: int
    resume_url: str
    cover_letter: str | None = None


class ApplicationUpdate(BaseModel):
    resume_url: str | None = None
    cover_letter: str | None = None


class StatusUpdate(BaseModel):
    status: str | int


class CoverLetterUpdate(BaseModel):
    cover_letter: str


def _application_to_public(application: JobApplication) -> dict:
    return {
        "id": application.id,
        "job_id": application.job_id,
        "job_title": application.job.title if application.job else None,
        "applicant_user_id": application.applicant_user_id,
        "resume_url": application.resume_url,
        "cover_letter": application.cover_letter,
        "status": application.status,
        "applied_at": isoformat(application.applied_at),
    }


def _parse_status_or_400(value) -> JobApplicationStatus:  # noqa: ANN001
    status = parse_status(value)
    if status is None:
        raise HTTPException(status_code=400, detail=INVALID_STATUS_MESSAGE)
    return status


def _can_view(user: User, application: JobApplication) -> bool:
    if user.role_enum == Role.ADMIN or application.applicant_user_id == user.id:
        return True
    job = application.job
    return job is not None and job.company is not None and job.company.owner_user_id == user.id


def _visible_application(db: Session, application_id: int, user: User) -> JobApplication:
    application = get_or_404(db, JobApplication, application_id, "application_not_found")
    if not _can_view(user, application):
        raise HTTPException(status_code=403, detail=get_error_message("forbidden"))
    return application


def _own_application(db: Session, application_id: int, user: User) -> JobApplication:
    application = get_or_404(db, JobApplication, application_id, "application_not_found")
    if application.applicant_user_id != user.id:
        raise HTTPException(status_code=403, detail=get_error_message("forbidden"))
    return application


@router.get("")
def list_applications(
    job_id: int | None = Query(default=None),
    applicant_user_id: int | None = Query(default=None),
    status: str | None = Query(default=None),
    applied_after: datetime | None = Query(default=None),
    applied_before: datetime | None = Query(default=None),
    db: Session = Depends(get_db),
    _admin: User = Depends(admin_only),
):
    q = db.query(JobApplication)
    if job_id is not None:
        q = q.filter(JobApplication.job_id == job_id)
    if applicant_user_id is not None:
        q = q.filter(JobApplication.applicant_user_id == applicant_user_id)
    if status:
        q = q.filter(JobApplication.status == _parse_status_or_400(status).value)
    if applied_after is not None:
        q = q.filter(JobApplication.applied_at >= ensure_utc(applied_after))
    if applied_before is not None:
        q = q.filter(JobApplication.applied_at <= ensure_utc(applied_before))
    applications = q.order_by(JobApplication.applied_at.desc()).all()
    return {"success": True, "applications": [_application_to_public(a) for a in applications]}


@router.get("/statistics")
def application_statistics(db: Session = Depends(get_db), _admin: User = Depends(admin_only)):
    by_status = {s.value: 0 for s in JobApplicationStatus}
    rows = db.query(JobApplication.status, func.count(JobApplication.id)).group_by(JobApplication.status).all()
    for status, count in rows:
        by_status[status] = count
    return {
        "success": True,
        "statistics": {
            "total_applications": sum(by_status.values()),
            "applications_by_status": by_status,
        },
    }


@router.get("/{application_id:int}")
def get_application(application_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    application = _visible_application(db, application_id, user)
    return {"success": True, "application": _application_to_public(application)}


@router.get("/job/{job_id:int}")
def applications_for_job(job_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    job = get_or_404(db, Job, job_id, "job_not_found")
    ensure_company_owner_or_admin(user, job.company)
    applications = (
        db.query(JobApplication)
        .filter(JobApplication.job_id == job.id)
        .order_by(JobApplication.applied_at.desc())
        .all()
    )
    return {"success": True, "applications": [_application_to_public(a) for a in applications]}


@router.get("/applicant/{user_id:int}")
def applications_for_applicant(user_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    ensure_self_or_admin(user, user_id)
    applications = (
        db.query(JobApplication)
        .filter(JobApplication.applicant_user_id == user_id)
        .order_by(JobApplication.applied_at.desc())
        .all()
    )
    return {"success": True, "applications": [_application_to_public(a) for a in applications]}


@router.get("/status/{status}")
def applications_by_status(status: str, db: Session = Depends(get_db), _admin: User = Depends(admin_only)):
    parsed = _parse_status_or_400(status)
    applications = (
        db.query(JobApplication)
        .filter(JobApplication.status == parsed.value)
        .order_by(JobApplication.applied_at.desc())
        .all()
    )
    return {"success": True, "applications": [_application_to_public(a) for a in applications]}


@router.get("/job/{job_id:int}/applicant/{user_id:int}")
def application_for_job_and_applicant(
    job_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    application = (
        db.query(JobApplication)
        .filter(JobApplication.job_id == job_id, JobApplication.applicant_user_id == user_id)
        .first()
    )
    if application is None:
        raise HTTPException(status_code=404, detail=get_error_message("application_not_found"))
    if not _can_view(user, application):
        raise HTTPException(status_code=403, detail=get_error_message("forbidden"))
    return {"success": True, "application": _application_to_public(application)}


@router.post("", status_code=201)
def apply_to_job(payload: ApplicationCreate, db: Session = Depends(get_db), user: User = Depends(job_seeker_only)):
    job_id = validate_integer_field(payload.job_id, "Job ID", min_value=1)
    job = get_or_404(db, Job, job_id, "job_not_found")
    if not job.accepts_applications:
        raise HTTPException(status_code=400, detail=get_error_message("job_closed"))

    existing = (
        db.query(JobApplication)
        .filter(JobApplication.job_id == job.id, JobApplication.applicant_user_id == user.id)
        .first()
    )
    if existing is not None:
        raise HTTPException(status_code=400, detail=get_error_message("already_applied"))

    application = JobApplication(job_id=job.id, applicant_user_id=user.id, resume_url=payload.resume_url)
    if payload.cover_letter is not None:
        application.add_cover_letter(payload.cover_letter)
    db.add(application)
    commit_or_raise(db, "creating job application")
    db.refresh(application)
    logger.info("User %s applied to job %s", user.id, job.id)
    return {"success": True, "application": _application_to_public(application)}


@router.put("/{application_id:int}")
def update_application(
    application_id: int,
    payload: ApplicationUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    application = _own_application(db, application_id, user)
    if payload.resume_url is not None:
        application.resume_url = payload.resume_url
    if payload.cover_letter is not None:
        application.add_cover_letter(payload.cover_letter)
    commit_or_raise(db, "updating job application")
    db.refresh(application)
    return {"success": True, "application": _application_to_public(application)}


@router.put("/{application_id:int}/status")
def update_application_status(
    application_id: int,
    payload: StatusUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    application = get_or_404(db, JobApplication, application_id, "application_not_found")
    ensure_company_owner_or_admin(user, application.job.company)

    result = application.change_status(payload.status)
    if not result.ok:
        logger.info("Rejected status change on application %s: %s", application.id, result.error)
        raise HTTPException(status_code=400, detail=result.error)

    commit_or_raise(db, "updating application status")
    db.refresh(application)
    return {"success": True, "application": _application_to_public(application)}


@router.put("/{application_id:int}/cover-letter")
def update_cover_letter(
    application_id: int,
    payload: CoverLetterUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    application = _own_application(db, application_id, user)
    application.add_cover_letter(payload.cover_letter)
    commit_or_raise(db, "updating cover letter")
    db.refresh(application)
    return {"success": True, "application": _application_to_public(application)}


@router.delete("/{application_id:int}", status_code=204)
def delete_application(application_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    application = get_or_404(db, JobApplication, application_id, "application_not_found")
    if user.role_enum != Role.ADMIN and application.applicant_user_id != user.id:
        raise HTTPException(status_code=403, detail=get_error_message("forbidden"))
    db.delete(application)
    commit_or_raise(db, "deleting job application")
    return Response(status_code=204)
