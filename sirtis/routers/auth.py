from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging
from sirtis.database import get_db
from sirtis.models.user import User
from sirtis.routers.auth_deps import get_current_user
from sirtis.services import auth as auth_service
from sirtis.services.audit import AuditService
from sirtis.schemas.auth import LoginRequest, Token, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)

@router.post("/login", response_model=Token)
def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    # JSON body instead of form-data for frontend compatibility
    user = db.query(User).filter(User.email == login_data.email).first()
    if not user or not auth_service.verify_password(login_data.password, user.hashed_password):
        AuditService.log(
            db,
            action="failed_login",
            entity_type="user",
            entity_id=None,
            user_id=None,
            user_role=None,
            details={"email": login_data.email, "reason": "invalid_credentials"}
        )
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is inactive")

    access_token = auth_service.create_access_token(data={
        "sub": user.email,
        "role": user.role.value,
        "user_id": user.id,
        "type": "access",
    })

    AuditService.log(
        db,
        action="login",
        entity_type="user",
        entity_id=user.id,
        user_id=user.id,
        user_role=user.role,
        details={"email": user.email}
    )
    db.commit()
    logger.info(f"User {user.email} logged in")

    return Token(
        access_token=access_token,
        token_type="bearer",
        user=UserResponse.model_validate(user),
    )

@router.get("/me", response_model=UserResponse)
def read_current_user(current_user: User = Depends(get_current_user)):
    return current_user
