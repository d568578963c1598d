from typing import List, Union
import logging

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra="ignore")

    PROJECT_NAME: str = "Shiv Accounts"
    API_V1_STR: str = "/api"

    # Must be overridden through .env or the environment in production
    SECRET_KEY: str = Field(
        default="dev-only-secret-key-please-change-in-production",
        description="Access token signing key"
    )
    REFRESH_SECRET_KEY: str = Field(
        default="dev-only-refresh-secret-please-change-in-production",
        description="Refresh token signing key"
    )
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days
    REFRESH_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30  # 30 days
    BCRYPT_ROUNDS: int = 12

    # CORS
    BACKEND_CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Database
    SQLITE_DATABASE_URI: str = "sqlite+aiosqlite:///./shiv_accounts.db"
    SQL_DEBUG: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # GST HSN lookup
    HSN_API_BASE_URL: str = "https://services.gst.gov.in/commonservices/hsn/search/qsearch"
    HSN_API_TIMEOUT: float = 10.0
    HSN_VALIDATE_TIMEOUT: float = 5.0

    # Automatic backup
    AUTO_BACKUP_ENABLED: bool = True
    AUTO_BACKUP_HOUR: int = 3  # 0-23
    AUTO_BACKUP_MINUTE: int = 0  # 0-59
    AUTO_BACKUP_KEEP_COUNT: int = 7
    BACKUP_DIR: str = "backups"

    # Seed data
    SEED_DEMO_DATA: bool = False
    ADMIN_EMAIL: str = "admin@shivaccounts.com"
    ADMIN_LOGIN_ID: str = "admin"
    ADMIN_PASSWORD: str = "admin123"

    # Chart of accounts codes used when posting documents
    ACCOUNT_CASH: str = "1001"
    ACCOUNT_BANK: str = "1002"
    ACCOUNT_RECEIVABLE: str = "1003"
    ACCOUNT_PAYABLE: str = "2001"
    ACCOUNT_GST_PAYABLE: str = "2002"
    ACCOUNT_SALES: str = "4001"
    ACCOUNT_PURCHASES: str = "5001"


settings = Settings()
logger.info(f"Loaded settings: API_V1_STR={settings.API_V1_STR}, CORS={settings.BACKEND_CORS_ORIGINS}")
