import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.category import Category
from ..models.job import Job
from ..models.user import User
from ..utils.error_handlers import commit_or_raise, get_error_message, get_or_404
from ..utils.roles import admin_only
from ..utils.validation import generate_slug

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/category", tags=["Categories"])


class CategoryPayload(BaseModel):
    name: str


def _category_to_public(category: Category) -> dict:
    return {"id": category.id, "name": category.name, "slug": category.slug}


def _ensure_unique(db: Session, name: str, exclude_id: int | None = None) -> None:
    """Names are unique ignoring case; slugs must not collide either."""
    cleaned = (name or "").strip()
    q = db.query(Category).filter(
        (func.lower(Category.name) == cleaned.lower()) | (Category.slug == generate_slug(cleaned))
    )
    if exclude_id is not None:
        q = q.filter(Category.id != exclude_id)
    if q.first() is not None:
        raise HTTPException(status_code=400, detail=get_error_message("category_exists"))


@router.get("")
def list_categories(db: Session = Depends(get_db)):
    categories = db.query(Category).order_by(Category.name).all()
    return {"success": True, "categories": [_category_to_public(c) for c in categories]}


@router.get("/{category_id:int}")
def get_category(category_id: int, db: Session = Depends(get_db)):
    category = get_or_404(db, Category, category_id, "category_not_found")
    return {"success": True, "category": _category_to_public(category)}


@router.get("/name/{name}")
def get_category_by_name(name: str, db: Session = Depends(get_db)):
    category = db.query(Category).filter(func.lower(Category.name) == name.strip().lower()).first()
    if category is None:
        raise HTTPException(status_code=404, detail=get_error_message("category_not_found"))
    return {"success": True, "category": _category_to_public(category)}


@router.get("/slug/{slug}")
def get_category_by_slug(slug: str, db: Session = Depends(get_db)):
    category = db.query(Category).filter(Category.slug == slug.strip().lower()).first()
    if category is None:
        raise HTTPException(status_code=404, detail=get_error_message("category_not_found"))
    return {"success": True, "category": _category_to_public(category)}


@router.get("/search/{name}")
def search_categories(name: str, db: Session = Depends(get_db)):
    pattern = f"%{name.strip().lower()}%"
    categories = db.query(Category).filter(func.lower(Category.name).like(pattern)).order_by(Category.name).all()
    return {"success": True, "categories": [_category_to_public(c) for c in categories]}


@router.post("", status_code=201)
def create_category(payload: CategoryPayload, db: Session = Depends(get_db), _admin: User = Depends(admin_only)):
    category = Category(name=payload.name)
    _ensure_unique(db, category.name)
    db.add(category)
    commit_or_raise(db, "creating category")
    db.refresh(category)
    return {"success": True, "category": _category_to_public(category)}


@router.put("/{category_id:int}")
def update_category(
    category_id: int,
    payload: CategoryPayload,
    db: Session = Depends(get_db),
    _admin: User = Depends(admin_only),
):
    category = get_or_404(db, Category, category_id, "category_not_found")
    _ensure_unique(db, payload.name, exclude_id=category.id)
    category.update_name(payload.name)
    commit_or_raise(db, "updating category")
    db.refresh(category)
    return {"success": True, "category": _category_to_public(category)}


@router.delete("/{category_id:int}", status_code=204)
def delete_category(category_id: int, db: Session = Depends(get_db), _admin: User = Depends(admin_only)):
    category = get_or_404(db, Category, category_id, "category_not_found")
    in_use = db.query(Job.id).filter(Job.category_id == category.id).first()
    if in_use is not None:
        raise HTTPException(status_code=400, detail=get_error_message("category_in_use"))
    db.delete(category)
    commit_or_raise(db, "deleting category")
    return Response(status_code=204)
