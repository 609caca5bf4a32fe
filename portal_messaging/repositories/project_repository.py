# portal_messaging/repositories/project_repository.py

from sqlalchemy import select
from sqlalchemy.orm import Session

from portal_messaging.core.base_repository import BaseRepository
from portal_messaging.infrastructure.database.models.project_model import ProjectModel


class ProjectRepository(BaseRepository[ProjectModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def get_by_id(self, project_id: int) -> ProjectModel | None:
        stmt = select(ProjectModel).where(ProjectModel.id == project_id)
        return self._session.execute(stmt).scalar_one_or_none()

    def get_many(self, project_ids: list[int]) -> dict[int, ProjectModel]:
        ids = {int(x) for x in project_ids if x is not None}
        if not ids:
            return {}
        stmt = select(ProjectModel).where(ProjectModel.id.in_(ids))
        return {p.id: p for p in self._session.execute(stmt).scalars().all()}
