# portal_messaging/repositories/user_repository.py

from sqlalchemy import select
from sqlalchemy.orm import Session

from portal_messaging.core.base_repository import BaseRepository
from portal_messaging.infrastructure.database.models.user_model import UserModel


class UserRepository(BaseRepository[UserModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def get_by_id(self, user_id: int) -> UserModel | None:
        stmt = select(UserModel).where(UserModel.id == user_id)
        return self._session.execute(stmt).scalar_one_or_none()

    def get_many(self, user_ids: list[int]) -> dict[int, UserModel]:
        ids = {int(x) for x in user_ids}
        if not ids:
            return {}
        stmt = select(UserModel).where(UserModel.id.in_(ids))
        return {u.id: u for u in self._session.execute(stmt).scalars().all()}
