"""
Profile endpoints — the caller's own profile.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import CurrentUser, get_current_user
from domain.errors import NotFoundError
from domain.responses import dump, success_response
from models import ProfileCreateRequest, ProfileOut, ProfileUpdateRequest
from services import profile_service

router = APIRouter(prefix="/profile", tags=["profile"])


async def _profile_payload(db: AsyncSession, user_id: str) -> dict:
    profile = await profile_service.get_profile(db, user_id=user_id)
    if not profile:
        raise NotFoundError("Profile", user_id)
    return dump(ProfileOut.model_validate(profile))


@router.get("")
async def get_profile(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return success_response(data=await _profile_payload(db, user.id))


@router.post("", status_code=201)
async def create_profile(
    request: ProfileCreateRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await profile_service.create_profile(db, user_id=user.id, fields=request.model_dump())
    await db.commit()
    return success_response(data=await _profile_payload(db, user.id))


@router.put("")
async def update_profile(
    request: ProfileUpdateRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await profile_service.update_profile(db, user_id=user.id, fields=request.model_dump(exclude_unset=True))
    await db.commit()
    return success_response(data=await _profile_payload(db, user.id))
