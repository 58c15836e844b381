"""Application configuration using Pydantic Settings."""
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # App
    app_name: str = "NCC Parade Attendance"
    debug: bool = False
    environment: str = "development"

    # MongoDB
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "ncc_management"

    # JWT
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60 * 24

    # Access control: comma-separated usernames, the first one is the super admin
    authorized_admins: str = "admin1,admin2,admin3,admin4,admin5,admin6"
    bootstrap_admin_password: str = ""
    bootstrap_admin_email: str = ""

    # CORS (comma-separated origins)
    cors_origins: str = "http://localhost:5173"

    # Scheduled email reports
    enable_scheduler: bool = False
    scheduler_timezone: str = "Asia/Kolkata"

    # SMTP; when host or credentials are empty, emails are logged instead of sent
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    email_from: str = ""
    admin_email: str = ""

    # Department inboxes for branch reports
    cse_dept_email: str = "cse@college.edu"
    aiml_dept_email: str = "aiml@college.edu"
    csds_dept_email: str = "csds@college.edu"
    ece_dept_email: str = "ece@college.edu"
    it_dept_email: str = "it@college.edu"
    eee_dept_email: str = "eee@college.edu"
    me_dept_email: str = "me@college.edu"
    ce_dept_email: str = "ce@college.edu"
    fallback_dept_email: str = "admin@college.edu"

    @property
    def authorized_admin_list(self) -> list[str]:
        return [u.strip() for u in self.authorized_admins.split(",") if u.strip()]

    @property
    def scheduler_enabled(self) -> bool:
        return self.enable_scheduler or self.environment.lower() == "production"

    @model_validator(mode="after")
    def _validate_production_secrets(self):
        if not self.debug:
            if self.jwt_secret_key in ("change-me-in-production", ""):
                raise ValueError(
                    "JWT_SECRET_KEY must be set to a strong secret when DEBUG is not enabled. "
                    "Generate one with: python -c \"import secrets; print(secrets.token_hex(32))\""
                )
        return self


settings = Settings()
