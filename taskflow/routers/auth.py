# taskflow/routers/auth.py
# PURPOSE: /auth/signup, /auth/signin

import logging

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from .. import errors
from ..auth import get_token_service
from ..config import settings
from ..models import SigninRequest, SignupRequest, TokenResponse, UserPublic
from ..rate_limit import auth_limit
from ..security import TokenService, verify_password
from ..store_db import get_db
from ..store_users import create_user, find_user_by_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=UserPublic, status_code=status.HTTP_201_CREATED)
@auth_limit
def signup(
    request: Request, response: Response, payload: SignupRequest, db: Session = Depends(get_db)
):
    user = create_user(
        db,
        username=payload.username,
        email=payload.email,
        password=payload.password,
        rounds=settings.BCRYPT_ROUNDS,
    )
    return user


@router.post("/signin", response_model=TokenResponse)
@auth_limit
def signin(
    request: Request,
    response: Response,
    payload: SigninRequest,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    if not payload.email or not payload.password:
        raise errors.ValidationError("Email and password are required")

    user = find_user_by_email(db, payload.email)
    # Same answer for unknown email and wrong password
    if user is None or not verify_password(payload.password, user.password_hash):
        logger.info("signin rejected")
        raise errors.AuthError("Invalid credentials")

    token = tokens.issue(user.id, user.username)
    logger.info("signin ok user_id=%s", user.id)
    return TokenResponse(token=token, username=user.username)
