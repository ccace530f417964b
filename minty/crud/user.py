# minty/crud/user.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from minty.core.auth import User
from minty.models.profile import Profile
from minty.schemas.profile import ProfileUpdate

async def get_profile(user: User, db: AsyncSession) -> Profile:
    """Return the user's profile, creating one with default preferences if missing."""
    result = await db.execute(select(Profile).where(Profile.id == user.id))
    profile = result.scalar_one_or_none()
    if profile is None:
        profile = Profile(id=user.id, full_name=user.full_name)
        db.add(profile)
        await db.commit()
        await db.refresh(profile)
    return profile

async def update_profile(profile: Profile, profile_in: ProfileUpdate, db: AsyncSession) -> Profile:
    for field, value in profile_in.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        if field == "currency":
            value = value.upper()
        setattr(profile, field, value)
    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    return profile
