"""Cloud storage service using Apache Libcloud."""

import logging
from pathlib import Path
from threading import Lock
from libcloud.common.types import LibcloudError
from libcloud.storage.types import Provider, ObjectDoesNotExistError, ContainerDoesNotExistError
from libcloud.storage.providers import get_driver
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_not_exception_type,
    before_sleep_log,
)


logger = logging.getLogger(__name__)

PLACEHOLDER_ACCESS_KEY = 'placeholder-key'
PLACEHOLDER_SECRET_KEY = 'placeholder-secret'


class BlobStoreError(Exception):
    """Raised when a blob store operation fails."""
    pass


class CloudStorageService:
    """Key-addressed photo storage over a single bucket."""

    def __init__(self, settings):
        """Initialize cloud storage service from settings.

        Args:
            settings: ConfigManager instance

        Raises:
            ValueError: If credentials are missing outside the build phase
        """
        self.provider_name = settings.cloud_storage_provider
        self.access_key = settings.cloud_storage_access_key
        self.secret_key = settings.cloud_storage_secret_key
        self.bucket_name = settings.cloud_storage_bucket
        self.region = settings.cloud_storage_region
        self.host = settings.cloud_storage_host
        self.local_path = Path(settings.cloud_storage_local_path)
        self.placeholder = False

        if self.provider_name != 'local' and not all([self.access_key, self.secret_key, self.bucket_name]):
            if not settings.build_phase:
                raise ValueError("Cloud storage configuration incomplete. Check environment variables.")
            logger.warning("Cloud storage credentials missing; using placeholder credentials for build phase")
            self.access_key = self.access_key or PLACEHOLDER_ACCESS_KEY
            self.secret_key = self.secret_key or PLACEHOLDER_SECRET_KEY
            self.placeholder = True

        self.driver = self._get_driver()
        self._container = None

        logger.info(f"Cloud storage initialized with provider: {self.provider_name}, bucket: {self.bucket_name}")

    def _get_driver(self):
        """Get the appropriate libcloud driver based on provider."""
        provider_map = {
            's3': Provider.S3,
            'gcs': Provider.GOOGLE_STORAGE,
            'azure': Provider.AZURE_BLOBS,
            'minio': Provider.MINIO,
            'local': Provider.LOCAL,
        }

        if self.provider_name not in provider_map:
            raise ValueError(f"Unsupported provider: {self.provider_name}")

        provider = provider_map[self.provider_name]

        if self.provider_name == 'local':
            self.local_path.mkdir(parents=True, exist_ok=True)
            return get_driver(provider)(key=str(self.local_path))

        kwargs = {
            'key': self.access_key,
            'secret': self.secret_key,
        }

        if self.provider_name == 's3':
            kwargs['region'] = self.region
        elif self.provider_name == 'minio':
            kwargs['host'] = self.host or 'localhost'

        return get_driver(provider)(**kwargs)

    @property
    def container(self):
        """Resolve the bucket on first use so placeholder clients stay inert."""
        if self._container is None:
            self._container = self._get_container()
        return self._container

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_not_exception_type(ValueError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    def _get_container(self):
        """Get or create the storage container/bucket."""
        if self.placeholder:
            raise ValueError("Cloud storage is running with placeholder credentials")
        try:
            return self.driver.get_container(container_name=self.bucket_name)
        except ContainerDoesNotExistError:
            logger.info(f"Creating container: {self.bucket_name}")
            return self.driver.create_container(container_name=self.bucket_name)

    def _exists(self, key):
        try:
            self.driver.get_object(self.container.name, key)
            return True
        except ObjectDoesNotExistError:
            return False

    def upload(self, key, data, content_type, overwrite=False):
        """
        Upload bytes under a key.

        Args:
            key: Object key
            data: Raw bytes
            content_type: MIME type stored with the object
            overwrite: When False, refuse to replace an existing object

        Raises:
            BlobStoreError: If the key exists (and overwrite is False) or the upload fails
        """
        def chunk_iterator(chunk_size=8192):
            for start in range(0, len(data), chunk_size):
                yield data[start:start + chunk_size]

        try:
            if not overwrite and self._exists(key):
                raise BlobStoreError(f"Object already exists: {key}")

            logger.info(f"Uploading {len(data)} bytes to {key}")
            self.driver.upload_object_via_stream(
                iterator=chunk_iterator(),
                container=self.container,
                object_name=key,
                extra={'content_type': content_type},
            )
        except BlobStoreError:
            raise
        except (LibcloudError, OSError, ValueError) as e:
            logger.error(f"Failed to upload {key}: {e}")
            raise BlobStoreError(f"Failed to upload {key}: {e}") from e

    def delete(self, keys):
        """
        Delete objects by key. Objects are independent, so a failure on one
        key does not stop the others.

        Args:
            keys: Iterable of object keys

        Returns:
            list: Keys that could not be deleted (missing objects count as deleted)
        """
        failed = []
        for key in keys:
            try:
                obj = self.driver.get_object(self.container.name, key)
                self.driver.delete_object(obj)
                logger.info(f"Deleted object: {key}")
            except ObjectDoesNotExistError:
                logger.debug(f"Object already absent: {key}")
            except Exception as e:
                logger.error(f"Failed to delete object {key}: {e}")
                failed.append(key)
        return failed

    def create_signed_url(self, key, ttl_seconds):
        """
        Create a time-limited read URL for one object.

        Args:
            key: Object key
            ttl_seconds: Lifetime of the URL

        Returns:
            str: Signed URL

        Raises:
            BlobStoreError: If the driver cannot sign URLs or the object is missing
        """
        try:
            obj = self.driver.get_object(self.container.name, key)
            return self.driver.get_object_cdn_url(obj, ex_expiry=ttl_seconds / 3600)
        except (LibcloudError, NotImplementedError, TypeError, ValueError) as e:
            raise BlobStoreError(f"Failed to sign URL for {key}: {e}") from e

    def list_keys(self, prefix):
        """List object keys under a prefix."""
        try:
            return [obj.name for obj in self.driver.list_container_objects(self.container, prefix=prefix)]
        except LibcloudError as e:
            raise BlobStoreError(f"Failed to list objects under {prefix}: {e}") from e


# Global instance
_cloud_storage = None
_cloud_storage_lock = Lock()

def get_cloud_storage(settings=None):
    """Get or create cloud storage service instance (thread-safe)."""
    global _cloud_storage
    if _cloud_storage is None:
        with _cloud_storage_lock:
            # Double-check pattern for thread safety
            if _cloud_storage is None:
                if settings is None:
                    from ..config_manager import ConfigManager
                    settings = ConfigManager()
                try:
                    _cloud_storage = CloudStorageService(settings)
                except Exception as e:
                    logger.error(f"Failed to initialize cloud storage: {e}")
                    raise
    return _cloud_storage
