from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from coopay.db.base import get_db
from coopay.schemas.auth import UserLogin, Token, UserResponse
from coopay.services.auth import authenticate_user, create_access_token_for_user
from coopay.core.dependencies import get_current_user
from coopay.models.user import User

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=Token)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Login and get JWT token."""
    from coopay.core.audit import write_audit_log
    user = authenticate_user(db, credentials.phone_number, credentials.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect phone number or password"
        )

    access_token = create_access_token_for_user(user)
    write_audit_log(user_name=user.names, user_role=user.role.value, action="Login", details=f"phone={user.phone_number}")
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", response_model=UserResponse)
def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information."""
    return current_user
