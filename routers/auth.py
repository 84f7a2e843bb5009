# Authentication Router for the Gig Marketplace
# Registration, login and the current-user profile

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging

from database.config import get_db
from database.models import User
from schemas.marketplace import RegisterRequest, LoginRequest, UserResponse
from auth.dependencies import get_current_user
from auth.utils import get_password_hash, verify_password, create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _token_response(user: User, message: str) -> dict:
    access_token = create_access_token(data={"sub": user.id, "role": user.role.value})
    return {
        "success": True,
        "message": message,
        "access_token": access_token,
        "token_type": "bearer",
        "user": UserResponse.model_validate(user).model_dump(mode="json"),
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(user_data: RegisterRequest, db: Session = Depends(get_db)):
    """
    Register a new client or freelancer.
    Returns JWT token on success.
    """
    existing_user = db.query(User).filter(User.email == user_data.email).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    new_user = User(
        email=user_data.email,
        password_hash=get_password_hash(user_data.password),
        name=user_data.name.strip(),
        role=user_data.role,
    )

    try:
        db.add(new_user)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(new_user)

    logger.info(f"Registered {new_user.role.value} {new_user.id}")
    return _token_response(new_user, "User registered successfully")


@router.post("/login")
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """
    Login with email and password.
    Returns JWT token on success.
    """
    user = db.query(User).filter(User.email == credentials.email).first()

    if not user or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated"
        )

    return _token_response(user, "Login successful")


@router.get("/me")
def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Current user profile with marketplace statistics."""
    return {
        "success": True,
        "user": UserResponse.model_validate(current_user).model_dump(mode="json"),
    }
