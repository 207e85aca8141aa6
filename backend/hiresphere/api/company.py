import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database import get_db
from ..enums import Role
from ..models.company import Company
from ..models.job import Job
from ..models.user import User
from ..utils.error_handlers import commit_or_raise, get_error_message, get_or_404
from ..utils.roles import admin_only, employer_or_admin, ensure_company_owner_or_admin
from ..utils.timeutil import isoformat, utcnow
from ..utils.validation import validate_integer_field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/company", tags=["Companies"])


class CompanyCreate(BaseModel):
    name: str
    description: str | None = None
    website: str | None = None
    logo_url: str | None = None
    location: str | None = None
    owner_user_id: int | None = None  # admins may create on behalf of an employer


class CompanyUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    website: str | None = None
    location: str | None = None


class LogoUpdate(BaseModel):
    logo_url: str | None = None


def _company_to_public(company: Company) -> dict:
    return {
        "id": company.id,
        "owner_user_id": company.owner_user_id,
        "name": company.name,
        "description": company.description,
        "website": company.website,
        "logo_url": company.logo_url,
        "location": company.location,
        "created_at": isoformat(company.created_at),
    }


@router.get("")
def list_companies(db: Session = Depends(get_db)):
    companies = db.query(Company).order_by(Company.name).all()
    return {"success": True, "companies": [_company_to_public(c) for c in companies]}


@router.get("/statistics")
def company_statistics(db: Session = Depends(get_db), _admin: User = Depends(admin_only)):
    total = db.query(func.count(Company.id)).scalar() or 0
    hiring = (
        db.query(func.count(func.distinct(Job.company_id)))
        .filter(Job.is_active.is_(True), Job.expires_at > utcnow())
        .scalar()
        or 0
    )
    owners = db.query(func.count(func.distinct(Company.owner_user_id))).scalar() or 0
    return {
        "success": True,
        "statistics": {
            "total_companies": total,
            "companies_with_active_jobs": hiring,
            "distinct_owners": owners,
        },
    }


@router.get("/{company_id:int}")
def get_company(company_id: int, db: Session = Depends(get_db)):
    company = get_or_404(db, Company, company_id, "company_not_found")
    return {"success": True, "company": _company_to_public(company)}


@router.get("/owner/{owner_user_id:int}")
def companies_by_owner(owner_user_id: int, db: Session = Depends(get_db)):
    companies = db.query(Company).filter(Company.owner_user_id == owner_user_id).order_by(Company.name).all()
    return {"success": True, "companies": [_company_to_public(c) for c in companies]}


@router.get("/search/name/{name}")
def search_by_name(name: str, db: Session = Depends(get_db)):
    pattern = f"%{name.strip().lower()}%"
    companies = db.query(Company).filter(func.lower(Company.name).like(pattern)).order_by(Company.name).all()
    return {"success": True, "companies": [_company_to_public(c) for c in companies]}


@router.get("/search/location/{location}")
def search_by_location(location: str, db: Session = Depends(get_db)):
    pattern = f"%{location.strip().lower()}%"
    companies = db.query(Company).filter(func.lower(Company.location).like(pattern)).order_by(Company.name).all()
    return {"success": True, "companies": [_company_to_public(c) for c in companies]}


@router.post("", status_code=201)
def create_company(payload: CompanyCreate, db: Session = Depends(get_db), user: User = Depends(employer_or_admin)):
    owner = user
    if payload.owner_user_id is not None and payload.owner_user_id != user.id:
        if user.role_enum != Role.ADMIN:
            raise HTTPException(status_code=403, detail=get_error_message("forbidden"))
        owner_id = validate_integer_field(payload.owner_user_id, "Owner user ID", min_value=1)
        owner = get_or_404(db, User, owner_id, "user_not_found")

    company = Company(
        name=payload.name,
        description=payload.description,
        website=payload.website,
        logo_url=payload.logo_url,
        location=(payload.location or "").strip() or None,
    )
    company.validate_owner(owner)
    company.owner_user_id = owner.id
    db.add(company)
    commit_or_raise(db, "creating company")
    db.refresh(company)
    logger.info("User %s created company %s", user.id, company.id)
    return {"success": True, "company": _company_to_public(company)}


@router.put("/{company_id:int}")
def update_company(
    company_id: int,
    payload: CompanyUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(employer_or_admin),
):
    company = get_or_404(db, Company, company_id, "company_not_found")
    ensure_company_owner_or_admin(user, company)

    if payload.name is not None:
        company.name = payload.name
    if payload.description is not None:
        company.description = payload.description
    if payload.website is not None:
        company.website = payload.website
    if payload.location is not None:
        company.location = payload.location.strip() or None

    commit_or_raise(db, "updating company")
    db.refresh(company)
    return {"success": True, "company": _company_to_public(company)}


@router.put("/{company_id:int}/logo")
def update_logo(
    company_id: int,
    payload: LogoUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(employer_or_admin),
):
    company = get_or_404(db, Company, company_id, "company_not_found")
    ensure_company_owner_or_admin(user, company)
    company.update_logo_url(payload.logo_url)
    commit_or_raise(db, "updating company logo")
    db.refresh(company)
    return {"success": True, "company": _company_to_public(company)}


@router.delete("/{company_id:int}", status_code=204)
def delete_company(company_id: int, db: Session = Depends(get_db), user: User = Depends(employer_or_admin)):
    company = get_or_404(db, Company, company_id, "company_not_found")
    ensure_company_owner_or_admin(user, company)
    db.delete(company)
    commit_or_raise(db, "deleting company")
    logger.info("User %s deleted company %s", user.id, company_id)
    return Response(status_code=204)
