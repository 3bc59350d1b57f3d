"""
Learned description -> category mappings and suggestion scoring.
"""
from typing import List
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from moneygoal.db import schemas
from moneygoal.db.database import get_db
from moneygoal.db.repositories import categories as category_repo
from moneygoal.api.deps import get_current_user_context
from moneygoal.services.category_learning import suggest_categories

router = APIRouter(prefix="/category-learning", tags=["category-learning"])


@router.post("/suggestions", response_model=List[schemas.LearnedSuggestion])
def get_suggestions_endpoint(
    payload: schemas.CategorySuggestRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    categories = category_repo.list_categories(db, user_id=user.id)
    if not categories:
        raise HTTPException(status_code=404, detail="No categories found")
    learned = category_repo.list_learning(db, user_id=user.id)
    return suggest_categories(payload.description, categories, learned)


@router.post("/learn", response_model=schemas.CategoryLearning)
def learn_endpoint(
    payload: schemas.LearnRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    if not category_repo.get_category(db, category_id=payload.category_id, user_id=user.id):
        raise HTTPException(status_code=404, detail="Category not found")
    return category_repo.upsert_learning(
        db,
        user_id=user.id,
        keyword=payload.pattern.strip().lower(),
        category_id=payload.category_id,
    )


@router.get("/", response_model=List[schemas.CategoryLearning])
def list_learned_endpoint(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    return category_repo.list_learning(db, user_id=user.id)


@router.delete("/{learning_id}")
def delete_learned_endpoint(
    learning_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    if not category_repo.delete_learning(db, learning_id=learning_id, user_id=user.id):
        raise HTTPException(status_code=404, detail="Learned pattern not found")
    return {"success": True}


@router.post("/reset")
def reset_learning_endpoint(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    return {"success": True, "deleted_count": category_repo.reset_learning(db, user_id=user.id)}
