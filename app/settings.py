from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_env: str = "dev"
    log_level: str = "INFO"

    # Infra
    database_url: str = "postgresql://app:app@db:5432/app"
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    db_pool_timeout_seconds: float = 5.0
    redis_url: str = "redis://redis:6379/0"
    redis_socket_timeout_seconds: float = 2.0
    smtp_base_url: str = "http://smtp-mock:8025"
    http_timeout_seconds: float = 10.0

    # Verification codes
    code_length: int = 6
    code_attempts: int = 5
    registration_code_ttl_minutes: int = 30
    password_reset_code_ttl_minutes: int = 5
    email_verification_code_ttl_minutes: int = 30
    contact_change_code_ttl_minutes: int = 30

    # Registration sessions
    registration_session_ttl_seconds: int = 30 * 60

    # Security / policies
    bcrypt_rounds: int = 12
    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_ttl_seconds: int = 3600

    # SMS (Twilio REST API)
    twilio_base_url: str = "https://api.twilio.com"
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_from_number: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
