"""Application configuration using Pydantic Settings."""
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # App
    app_name: str = "Automated Attendance"
    debug: bool = False
    log_level: str = "INFO"

    # MongoDB
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "automated_attendance"
    mongodb_server_selection_timeout_ms: int = 5000
    mongodb_connect_timeout_ms: int = 10000
    mongodb_socket_timeout_ms: int = 45000
    db_operation_timeout_seconds: float = 10.0

    # JWT
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60
    jwt_refresh_token_expire_days: int = 30

    # Seeded admin account, checked through the admin-id / admin-password headers
    admin_id: str = "admin123"
    admin_password: str = "pass123"
    admin_full_name: str = "System Administrator"

    # Attendance codes
    attendance_code_length: int = 6
    scheduled_code_ttl_seconds: int = 1800
    instructor_qr_code_ttl_seconds: int = 120
    timezone: str = "UTC"  # calendar day of a session is computed in this zone

    # CORS (comma-separated origins)
    cors_origins: str = "*"

    @model_validator(mode="after")
    def _validate_production_secrets(self):
        if not self.debug:
            if self.jwt_secret_key in ("change-me-in-production", ""):
                raise ValueError(
                    "JWT_SECRET_KEY must be set to a strong secret when DEBUG is not enabled. "
                    "Generate one with: python -c \"import secrets; print(secrets.token_hex(32))\""
                )
            if self.admin_password in ("pass123", ""):
                raise ValueError("ADMIN_PASSWORD must be changed from the default when DEBUG is not enabled.")
        if self.attendance_code_length < 4:
            raise ValueError("ATTENDANCE_CODE_LENGTH must be at least 4")
        return self


settings = Settings()
