from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import DuplicateEntity
from app.core.logger import logger
from app.core.security import hash_password
from app.models.user.user import User, UserRole
from app.schemas.guides.guide import TourGuideCreate
from app.services.requests.assignment_service import load_guide


class GuideService:
    @staticmethod
    async def register_tour_guide(session: AsyncSession, data: TourGuideCreate) -> User:
        result = await session.execute(select(User).where(User.email == data.email))
        if result.scalar():
            raise DuplicateEntity("User", "email", data.email)

        guide = User(
            name=data.name,
            email=data.email,
            phone=data.phone,
            hashed_password=hash_password(data.password),
            role=UserRole.tour_guide,
            active=True,
        )
        session.add(guide)
        try:
            await session.commit()
            await session.refresh(guide)
        except IntegrityError:
            # Lost a race with another registration for the same email
            await session.rollback()
            raise DuplicateEntity("User", "email", data.email)

        logger.info(f"Tour guide {guide.id} registered ({guide.email})")
        return guide

    @staticmethod
    async def get_tour_guide(session: AsyncSession, guide_id: int) -> User:
        return await load_guide(session, guide_id)

    @staticmethod
    async def toggle_active(session: AsyncSession, guide_id: int) -> User:
        """Flip a guide's availability. Requests already assigned stay with them."""
        guide = await load_guide(session, guide_id)
        guide.active = not guide.active
        await session.commit()
        await session.refresh(guide)
        logger.info(f"Tour guide {guide_id} is now {'active' if guide.active else 'inactive'}")
        return guide
