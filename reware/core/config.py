"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Backend credentials are validated at load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    All settings are optional with defaults except the Firebase credentials,
    which validate_backend requires when backend is 'firestore'.
    """

    # App
    app_name: str = "reware"
    app_version: str = "1.0.0"
    debug: bool = False

    # Backend: "firestore" (Firebase Auth + Firestore REST) or "memory" (in-process, for dev/tests)
    backend: str = "firestore"

    # Firebase / Firestore: use key (env) or path (file) for the service account.
    firebase_service_account_key: SecretStr | None = None
    firebase_service_account_path: str | None = None
    # Web API key of the Firebase project (Identity Toolkit sign-in / sign-up / token refresh).
    firebase_api_key: SecretStr | None = None

    # CORS
    allowed_origins: str = "http://localhost:3000,http://localhost:8000"

    # Live data
    snapshot_poll_interval_seconds: float = 2.0
    http_timeout_seconds: float = 30.0

    # Toasts kept per session (most recent first out of the window)
    notification_history_size: int = 20

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_backend(self) -> "Settings":
        """Validate backend selection and the credentials it needs.

        - firestore: FIREBASE_SERVICE_ACCOUNT_KEY or FIREBASE_SERVICE_ACCOUNT_PATH,
          and FIREBASE_API_KEY.
        - memory: nothing required.
        """
        if self.backend == "firestore":
            has_key = (
                self.firebase_service_account_key
                and self.firebase_service_account_key.get_secret_value()
            )
            if not has_key and not self.firebase_service_account_path:
                raise ValueError(
                    "When backend is 'firestore', set FIREBASE_SERVICE_ACCOUNT_KEY (full JSON string) "
                    "or FIREBASE_SERVICE_ACCOUNT_PATH (path to JSON file)."
                )
            if not (self.firebase_api_key and self.firebase_api_key.get_secret_value()):
                raise ValueError(
                    "FIREBASE_API_KEY is required when backend is 'firestore' "
                    "(Project settings → General → Web API Key)."
                )
        elif self.backend != "memory":
            raise ValueError(
                f"backend must be 'firestore' or 'memory', got: {self.backend!r}"
            )
        if self.snapshot_poll_interval_seconds <= 0:
            raise ValueError("SNAPSHOT_POLL_INTERVAL_SECONDS must be positive")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
