"""Category endpoints."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_admin
from ..database import get_db
from ..schemas.category import (
    CategoryCreate,
    CategoryDetailResponse,
    CategoryUpdate,
    CategoryWithCountResponse,
)
from ..services import CategoryService

router = APIRouter(prefix="/api/categories", tags=["categories"])
admin_router = APIRouter(prefix="/api/admin/categories", tags=["admin"])


@router.get("", response_model=List[CategoryWithCountResponse])
def list_categories(db: Session = Depends(get_db)):
    """All categories with their number of published articles."""
    return CategoryService(db).list_with_counts()


@admin_router.get("", response_model=List[CategoryDetailResponse])
def admin_list_categories(db: Session = Depends(get_db), auth: AuthContext = Depends(require_admin)):
    return CategoryService(db).list_categories()


@admin_router.post("", response_model=CategoryDetailResponse, status_code=201)
def create_category(
    data: CategoryCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    return CategoryService(db).create_category(data)


@admin_router.put("/{category_id}", response_model=CategoryDetailResponse)
def update_category(
    category_id: str,
    data: CategoryUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    return CategoryService(db).update_category(category_id, data)


@admin_router.delete("/{category_id}", status_code=204)
def delete_category(
    category_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Delete a category. Articles keep their other categories."""
    CategoryService(db).delete_category(category_id)
