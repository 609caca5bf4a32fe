# portal_messaging/api/schemas/user_schema.py
from datetime import datetime
from typing import Optional

from pydantic import field_serializer

from portal_messaging.api.schemas._camel_model import CamelModel
from portal_messaging.api.schemas._datetime_serializer import serialize_dt


class UserSummaryResponse(CamelModel):
    id: int
    username: str
    display_name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    role: str
    is_online: bool
    last_seen_at: Optional[datetime] = None

    @field_serializer("last_seen_at")
    def serialize_dates(self, value: datetime | None):
        return serialize_dt(value)
