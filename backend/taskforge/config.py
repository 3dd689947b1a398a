from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str = "postgresql+psycopg2://taskforge:taskforge_dev@db:5432/taskforge"
    environment: str = "development"
    db_connection_timeout_seconds: int = 5
    verify_database_on_startup: bool = True
    run_migrations: bool = True

    # JWT validation. HS256 uses the shared secret, RS256 uses the JWKS below.
    jwt_secret_key: str | None = None
    jwt_algorithm: str = "HS256"
    jwt_issuer: str | None = None
    jwt_audience: str | None = None

    # Auth0 settings
    auth0_domain: str | None = None
    auth0_management_token: str | None = None
    auth0_jwks_url: str | None = None

    # S3 settings
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    aws_region: str = "us-east-1"
    s3_bucket: str = "task4gebucket"
    s3_public_base_url: str | None = None
    s3_endpoint_url: str | None = None

    # File upload settings
    max_image_size_bytes: int = 10 * 1024 * 1024  # 10 MB
    allowed_image_types: list[str] = ["image/png", "image/jpeg", "image/gif", "image/webp"]

    cors_origins: list[str] = ["*"]

    # Health checks
    gc_memory_threshold_bytes: int = 1024 * 1024 * 1024

    @property
    def public_base_url(self) -> str:
        if self.s3_public_base_url:
            return self.s3_public_base_url.rstrip("/")
        return f"https://{self.s3_bucket}.s3.amazonaws.com"


settings = Settings()
