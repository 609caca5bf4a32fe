# portal_messaging/infrastructure/database/models/project_model.py

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from portal_messaging.infrastructure.database.base_model import BaseModel, BigIntPK


class ProjectModel(BaseModel):
    __tablename__ = "tbProjects"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=True)
