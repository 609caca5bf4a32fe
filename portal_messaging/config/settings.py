# portal_messaging/config/settings.py
from urllib.parse import quote_plus

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ✅ Whitelist padrão de anexos
# Ex. via env: ALLOWED_MIME_TYPES="application/pdf,image/png,image/jpeg"
_DEFAULT_ALLOWED_MIME_TYPES = ",".join(
    [
        # Imagens
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/bmp",
        "image/webp",

        # PDFs
        "application/pdf",

        # Word
        "application/msword",  # .doc
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",  # .docx

        # Excel
        "application/vnd.ms-excel",  # .xls
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",  # .xlsx

        # PowerPoint
        "application/vnd.ms-powerpoint",  # .ppt
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",  # .pptx

        # Texto
        "text/plain",
        "text/csv",

        # Compactados
        "application/zip",
        "application/x-rar-compressed",
        "application/x-7z-compressed",
    ]
)


class Settings(BaseSettings):
    # 🔵 Banco principal (PostgreSQL); DATABASE_URL tem precedência sobre DB_*
    database_url_override: str | None = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL", "database_url_override"),
    )
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "portal"
    db_user: str = "portal"
    db_password: str = ""

    environment: str = "development"
    debug: bool = False
    sql_echo: bool = False
    log_level: str = "INFO"

    app_prefix: str = ""
    cors_origins_raw: str = Field(
        default="http://localhost:5173,http://127.0.0.1:5173",
        validation_alias=AliasChoices("CORS_ORIGINS", "cors_origins_raw"),
    )
    socketio_async_mode: str = "eventlet"

    jwt_secret: str = "dev-secret-change-me"
    jwt_access_minutes: int = 60
    jwt_issuer: str = "portal-messaging-api"
    jwt_audience: str = "portal-front"

    files_base_path: str = "./_uploads"
    max_attachment_size_mb: int = 10
    allowed_mime_types_raw: str = Field(
        default=_DEFAULT_ALLOWED_MIME_TYPES,
        validation_alias=AliasChoices("ALLOWED_MIME_TYPES", "allowed_mime_types_raw"),
    )

    message_edit_window_minutes: int = 15
    online_window_minutes: int = 5
    default_page_size: int = 50
    max_page_size: int = 100

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("db_host", "db_name", "db_user", "db_password", mode="before")
    @classmethod
    def strip_strings(cls, v):
        if isinstance(v, str):
            return v.strip().strip('"').strip("'")
        return v

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override

        user = quote_plus(self.db_user)
        password = quote_plus(self.db_password)
        host = self.db_host
        port = self.db_port
        db = self.db_name

        return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{db}"

    @property
    def api_prefix(self) -> str:
        return f"{self.app_prefix.rstrip('/')}/api"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins_raw.split(",") if o.strip()]

    @property
    def allowed_mime_types(self) -> set[str]:
        parts = [p.strip().lower() for p in (self.allowed_mime_types_raw or "").split(",")]
        return {p for p in parts if p}

    @property
    def max_attachment_bytes(self) -> int:
        return max(1, self.max_attachment_size_mb) * 1024 * 1024


settings = Settings()
