# portal_messaging/api/routes/file_routes.py

from __future__ import annotations

from flask import Blueprint, send_file

from portal_messaging.api.middlewares.auth_middleware import current_user_id, require_auth
from portal_messaging.api.routes._services import build_services
from portal_messaging.infrastructure.database.session import db_session

bp_files = Blueprint("files", __name__)


# -------------------------
# Download (consulta)
# -------------------------

@bp_files.get("/<path:stored_name>")
@require_auth
def download_file(stored_name: str):
    user_id = current_user_id()

    with db_session() as session:
        f = build_services(session).attachments.open_for_download(
            user_id=user_id,
            stored_name=stored_name,
        )

    return send_file(
        f.path,
        # imagens abrem inline; o resto baixa
        as_attachment=not f.mime_type.startswith("image/"),
        download_name=f.name,
        mimetype=f.mime_type,
        conditional=True,
        etag=True,
        last_modified=True,
    )
