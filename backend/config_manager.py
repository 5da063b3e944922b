"""Configuration Manager for the daily report backend."""
import logging
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from shared.enums import CleanlinessMode

logger = logging.getLogger(__name__)

PLACEHOLDER_DATABASE_URI = 'sqlite://'


class ConfigManager(BaseSettings):
    """Manages application configuration settings using Pydantic BaseSettings."""

    # Relational store
    database_url: Optional[str] = None

    # Blob store
    cloud_storage_provider: str = 's3'
    cloud_storage_access_key: Optional[str] = None
    cloud_storage_secret_key: Optional[str] = None
    cloud_storage_bucket: str = 'daily-reports'
    cloud_storage_region: str = 'us-east-1'
    cloud_storage_host: str = ''
    cloud_storage_local_path: str = './local_blobs'
    signed_url_ttl: int = 60 * 60 * 24 * 7  # 7 days

    # Notifications
    resend_api_key: str = ''
    resend_api_url: str = 'https://api.resend.com/emails'
    resend_from_email: str = 'Daily Reports <onboarding@resend.dev>'
    notify_email: str = 'reports@example.com'
    notify_timeout: float = 10.0

    # Deployment choices
    cleanliness_mode: CleanlinessMode = CleanlinessMode.TOGGLE
    site_lookup_enabled: bool = False

    # Runtime
    app_env: str = 'production'
    build_phase: bool = False
    max_content_length: int = 100 * 1024 * 1024
    log_level: str = 'INFO'

    model_config = SettingsConfigDict(case_sensitive=False, extra='ignore')

    @property
    def is_development(self):
        return self.app_env.lower() == 'development'


def resolve_database_uri(settings):
    """Return the SQLAlchemy URI for the relational store.

    Fails fast when DATABASE_URL is missing, except during build-time
    introspection (BUILD_PHASE) where an inert in-memory database is used.

    Raises:
        RuntimeError: If DATABASE_URL is not set outside the build phase
    """
    if settings.database_url:
        return settings.database_url
    if settings.build_phase:
        logger.warning("DATABASE_URL not set; using in-memory placeholder database for build phase")
        return PLACEHOLDER_DATABASE_URI
    raise RuntimeError('Missing DATABASE_URL environment variable')
