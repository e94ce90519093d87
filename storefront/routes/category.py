from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..db import get_db
from ..deps import json_object, require_admin
from ..errors import envelope, server_error
from ..utils import slugify

router = APIRouter(prefix="/api/v1/category", tags=["category"])


def category_payload(category: models.Category) -> schemas.CategoryRead:
    return schemas.CategoryRead.model_validate(category)


def category_name(payload: dict) -> str:
    name = payload.get("name")
    return name.strip() if isinstance(name, str) else ""


@router.post("/create-category")
async def create_category(
    user: models.User = Depends(require_admin),
    payload: dict = Depends(json_object),
    db: Session = Depends(get_db),
):
    name = category_name(payload)
    if not name:
        return envelope(401, False, "Name is required")
    if not slugify(name):
        return envelope(400, False, "Name must contain letters or digits")
    try:
        if crud.find_category_conflict(db, name):
            return envelope(200, True, "Category Already Exists")
        category = crud.create_category(db, name)
    except SQLAlchemyError as e:
        db.rollback()
        return server_error("Error in Category", e)
    return envelope(201, True, "New category created", category=category_payload(category))


@router.put("/update-category/{category_id}")
async def update_category(
    category_id: str,
    user: models.User = Depends(require_admin),
    payload: dict = Depends(json_object),
    db: Session = Depends(get_db),
):
    name = category_name(payload)
    if not name:
        return envelope(401, False, "Name is required")
    if not category_id.strip():
        return envelope(401, False, "Category ID is required")
    if not slugify(name):
        return envelope(400, False, "Name must contain letters or digits")
    try:
        if crud.find_category_conflict(db, name, exclude_id=category_id):
            return envelope(200, False, "Category with this name already exists")
        category = crud.update_category(db, category_id, name)
    except SQLAlchemyError as e:
        db.rollback()
        return server_error("Error while updating category", e)
    if not category:
        return envelope(404, False, "Category not found")
    return envelope(200, True, "Category Updated Successfully", category=category_payload(category))


@router.get("/get-category")
async def list_categories(db: Session = Depends(get_db)):
    try:
        categories = crud.list_categories(db)
    except SQLAlchemyError as e:
        return server_error("Error while getting all categories", e)
    return envelope(200, True, "All Categories List", category=[category_payload(c) for c in categories])


@router.get("/single-category/{slug}")
async def single_category(slug: str, db: Session = Depends(get_db)):
    try:
        category = crud.get_category_by_slug(db, slug)
    except SQLAlchemyError as e:
        return server_error("Error while getting Single Category", e)
    if not category:
        return envelope(404, False, "Category not found")
    return envelope(200, True, "Get Single Category Successfully", category=category_payload(category))


@router.delete("/delete-category/{category_id}")
async def delete_category(
    category_id: str,
    user: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        deleted = crud.delete_category(db, category_id)
    except SQLAlchemyError as e:
        db.rollback()
        return server_error("Error while deleting category", e)
    if not deleted:
        return envelope(404, False, "Category not found or already deleted")
    return envelope(200, True, "Category Deleted Successfully")
