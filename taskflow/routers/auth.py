from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from taskflow.core.database import get_db
from taskflow.core.deps import get_optional_user
from taskflow.core.security import create_access_token
from taskflow.models.user import User, ROLE_ADMIN
from taskflow.schemas.user import UserCreate, UserResponse, LoginRequest, TokenResponse
from taskflow.services import user_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user)
):
    """Créer un utilisateur (inscription, ou création par un admin)"""

    # Seul un admin peut créer un autre admin
    if user_data.role == ROLE_ADMIN and (current_user is None or not current_user.is_admin):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")

    return user_service.create_user(db, user_data)


@router.post("/login", response_model=TokenResponse)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Se connecter et recevoir le token"""

    user = user_service.authenticate(db, credentials.email, credentials.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    return {
        "token": create_access_token(user.id, user.role),
        "token_type": "bearer",
        "user": UserResponse.model_validate(user)
    }
