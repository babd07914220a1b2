from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database settings (metadata for the default backend)
    DATABASE_URL: str = "sqlite:///./fileshare.db"

    # Auth settings
    SHARE_PASSWORD_HASH: str = ""  # bcrypt hash of the shared password
    JWT_SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60 * 24
    AUTH_COOKIE_NAME: str = "auth_token"

    # Default backend settings
    STORAGE_BASE_PATH: str = "data/files"
    DEFAULT_BACKEND_MAX_SIZE_MB: int = 25

    # Bulk backend settings (S3 compatible)
    S3_BUCKET_NAME: str = "fileshare"
    S3_REGION: str | None = None
    S3_ENDPOINT_URL: str | None = None
    S3_ACCESS_KEY_ID: str | None = None
    S3_SECRET_ACCESS_KEY: str | None = None
    S3_PART_SIZE_MB: int = 8

    # Upload settings
    UPLOAD_READ_CHUNK_KB: int = 64

    # Logging settings
    LOG_LEVEL: str = "INFO"

    # "env_file": read variables from .env as well as the environment
    # "extra": "ignore": unknown variables are ignored instead of rejected
    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
