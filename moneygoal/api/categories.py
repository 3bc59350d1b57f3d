"""
Category management and keyword auto-categorization.
"""
from typing import List
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from moneygoal.db import schemas
from moneygoal.db.database import get_db
from moneygoal.db.repositories import categories as category_repo
from moneygoal.api.deps import get_current_user_context
from moneygoal.services.categorization import categorize, load_user_categories

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("/", response_model=List[schemas.Category])
def list_categories_endpoint(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    return load_user_categories(db, user_id=user.id)


@router.post("/suggest", response_model=schemas.CategorySuggestion)
def suggest_category_endpoint(
    payload: schemas.CategorySuggestRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    category = categorize(payload.description, load_user_categories(db, user_id=user.id))
    return {"category_id": category.id if category else None, "category": category}


@router.get("/{category_id}", response_model=schemas.Category)
def get_category_endpoint(
    category_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    category = category_repo.get_category(db, category_id=category_id, user_id=user.id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.post("/", response_model=schemas.Category, status_code=status.HTTP_201_CREATED)
def create_category_endpoint(
    payload: schemas.CategoryCreate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    return category_repo.create_category(
        db,
        user_id=user.id,
        name=payload.name,
        emoji=payload.emoji,
        color=payload.color,
        keywords=payload.keywords,
    )


@router.put("/{category_id}", response_model=schemas.Category)
def update_category_endpoint(
    category_id: uuid.UUID,
    changes: schemas.CategoryUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    updated = category_repo.update_category(
        db,
        category_id=category_id,
        user_id=user.id,
        changes=changes.model_dump(exclude_unset=True, exclude_none=True),
    )
    if not updated:
        raise HTTPException(status_code=404, detail="Category not found")
    return updated


@router.delete("/{category_id}")
def delete_category_endpoint(
    category_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    if not category_repo.delete_category(db, category_id=category_id, user_id=user.id):
        raise HTTPException(status_code=404, detail="Category not found")
    return {"success": True}
