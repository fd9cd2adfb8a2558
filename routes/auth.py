import logging

from fastapi import APIRouter, Depends
from sqlmodel import Session, select
from sqlalchemy.exc import SQLAlchemyError

from models.models import User
from schemas.user_schema import UserLogin, UserRead, TokenResponse
from core import errors
from core.database import get_session
from core.security import verify_password, create_token_for_user, get_current_user

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

router = APIRouter(tags=["Authentication"])


# ==========================================================
# ✅ Login
# ==========================================================
@router.post("/login", response_model=TokenResponse)
def login(credentials: UserLogin, session: Session = Depends(get_session)):
    """Authenticate with email + password and receive a bearer token"""
    try:
        db_user = session.exec(select(User).where(User.email == credentials.email)).first()
    except SQLAlchemyError as e:
        logger.exception("❌ Login database error: %s", e)
        raise errors.server_error("We're having trouble logging you in. Please try again later.")

    if not db_user or not verify_password(credentials.password, db_user.password_hash):
        raise errors.unauthorized("Invalid email or password.")

    if not db_user.is_active:
        raise errors.forbidden("Your account is inactive.")

    logger.info("🔑 Login successful for %s", db_user.email)
    return TokenResponse(access_token=create_token_for_user(db_user), user=UserRead.model_validate(db_user))


# ==========================================================
# ✅ Get Current Authenticated User
# ==========================================================
@router.get("/me", response_model=UserRead)
def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Return the authenticated user's information"""
    return current_user
