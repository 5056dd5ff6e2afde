from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from taskflow.core.database import get_db
from taskflow.core.deps import get_current_user, require_admin
from taskflow.models.user import User
from taskflow.schemas.user import UserResponse, UserUpdate, UserDeleteResponse
from taskflow.services import user_service
from taskflow.services.authorization import ensure_user_access

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserResponse])
def list_users(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return user_service.list_users(db)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    # admin ou soi-même
    ensure_user_access(current_user, user_id)
    return user_service.get_user(db, user_id)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    user_data: UserUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    user = user_service.get_user(db, user_id)
    return user_service.update_user(db, user, user_data)


@router.delete("/{user_id}", response_model=UserDeleteResponse)
def delete_user(user_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    user = user_service.get_user(db, user_id)
    affected, unassigned = user_service.delete_user(db, user, admin)
    return {"message": "User deleted", "affected_tasks": affected, "unassigned_tasks": unassigned}
