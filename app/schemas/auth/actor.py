from pydantic import BaseModel
from app.models.user.user import UserRole


class Actor(BaseModel):
    """Caller identity as vouched for by the auth provider."""

    user_id: int
    role: UserRole

    class Config:
        frozen = True

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin

    @property
    def is_tour_guide(self) -> bool:
        return self.role == UserRole.tour_guide
