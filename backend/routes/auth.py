"""
Auth endpoints — email/password accounts with bearer tokens.

    POST /auth/register  -> creates user + client profile, returns a token
    POST /auth/login     -> returns a token
    GET  /auth/me        -> who the token belongs to
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import CurrentUser, get_current_user
from domain.responses import dump, success_response
from middleware.auth import issue_access_token
from middleware.rate_limit import rate_limit
from models import LoginRequest, MeResponse, RegisterRequest, TokenResponse
from services import auth_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


def _token_payload(user_id: str, role: str) -> dict:
    token, expires_in = issue_access_token(user_id=user_id, role=role)
    return dump(
        TokenResponse(
            user_id=user_id,
            role=role,
            access_token=token,
            expires_in_seconds=expires_in,
        )
    )


@router.post("/register", status_code=201)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    _rate=Depends(rate_limit(max_requests=10, window_seconds=60)),
):
    user, profile = await auth_service.register_user(
        db, name=request.name, email=request.email, password=request.password
    )
    await db.commit()
    return success_response(data=_token_payload(user.id, profile.role))


@router.post("/login")
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
    _rate=Depends(rate_limit(max_requests=20, window_seconds=60)),
):
    user, role = await auth_service.authenticate(db, email=request.email, password=request.password)
    return success_response(data=_token_payload(user.id, role))


@router.get("/me")
async def me(user: CurrentUser = Depends(get_current_user)):
    return success_response(
        data=dump(MeResponse(id=user.id, email=user.email, name=user.name, role=user.role))
    )
