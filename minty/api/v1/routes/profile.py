# minty/api/v1/routes/profile.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from minty.core.auth import User, UserRead
from minty.core.database import get_async_session
from minty.crud.user import get_profile, update_profile
from minty.schemas.profile import ProfileRead, ProfileUpdate
from minty.api.deps import get_current_user

router = APIRouter(tags=["User Management"])

@router.get("/users/me", response_model=UserRead)
async def read_own_account(user: User = Depends(get_current_user)):
    """Get current user's account"""
    return user

@router.get("/profile", response_model=ProfileRead)
async def read_own_profile(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Get current user's display preferences, created with defaults on first access"""
    return await get_profile(user, db)

@router.patch("/profile", response_model=ProfileRead)
async def update_own_profile(
    profile_update: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    if not profile_update.model_dump(exclude_unset=True):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields provided for update"
        )
    profile = await get_profile(user, db)
    return await update_profile(profile, profile_update, db)
