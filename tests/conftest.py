"""Pytest configuration and fixtures for daily report tests."""
import io
import pytest
import tempfile
import os
from backend.app import create_app
from backend.config_manager import ConfigManager
from backend.models import db, Organisation
from backend.services.cloud_storage import BlobStoreError
from backend.services.notifier import NotificationResult


class InMemoryCloudStorage:
    """Stands in for CloudStorageService; objects live in a dict."""

    def __init__(self):
        self.objects = {}
        self.fail_on_upload = None  # 1-based upload attempt that fails
        self.fail_signing = False
        self.fail_delete = set()
        self.upload_attempts = 0

    def upload(self, key, data, content_type, overwrite=False):
        self.upload_attempts += 1
        if self.fail_on_upload == self.upload_attempts:
            raise BlobStoreError(f"Failed to upload {key}: simulated outage")
        if not overwrite and key in self.objects:
            raise BlobStoreError(f"Object already exists: {key}")
        self.objects[key] = (data, content_type)

    def delete(self, keys):
        failed = []
        for key in keys:
            if key in self.fail_delete:
                failed.append(key)
                continue
            self.objects.pop(key, None)
        return failed

    def create_signed_url(self, key, ttl_seconds):
        if self.fail_signing:
            raise BlobStoreError(f"Failed to sign URL for {key}: simulated")
        return f"https://blobs.example.com/{key}?expires_in={ttl_seconds}"

    def list_keys(self, prefix):
        return [key for key in self.objects if key.startswith(prefix)]


class FakeNotifier:
    """Records sent emails instead of calling Resend."""

    def __init__(self, configured=True):
        self.configured = configured
        self.sent = []
        self.error = None  # exception raised from send
        self.rejection = None  # API-level rejection message

    @property
    def is_configured(self):
        return self.configured

    def send(self, from_address, to, subject, html):
        if self.error is not None:
            raise self.error
        if self.rejection is not None:
            return NotificationResult(sent=False, error=self.rejection)
        self.sent.append({'from': from_address, 'to': to, 'subject': subject, 'html': html})
        return NotificationResult(sent=True, message_id=f"msg-{len(self.sent)}")


def make_settings(**overrides):
    values = {
        'database_url': 'sqlite://',
        'cloud_storage_provider': 's3',
        'cloud_storage_access_key': 'test_key',
        'cloud_storage_secret_key': 'test_secret',
        'cloud_storage_bucket': 'test-bucket',
        'resend_api_key': 'test-key',
        'resend_from_email': 'Daily Reports <reports@example.com>',
        'notify_email': 'office@example.com',
        'app_env': 'production',
        'build_phase': False,
        'site_lookup_enabled': False,
    }
    values.update(overrides)
    return ConfigManager(**values)


@pytest.fixture
def settings_factory():
    """Build ConfigManager instances with test defaults and per-test overrides."""
    return make_settings


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def cloud_storage():
    return InMemoryCloudStorage()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def app(settings, cloud_storage, notifier, monkeypatch):
    """Create and configure a test app instance."""
    # Create temporary database for testing
    db_fd, db_path = tempfile.mkstemp()

    test_config = {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{db_path}',
        'SETTINGS': settings,
    }

    monkeypatch.setattr('backend.services.report_submission.get_cloud_storage', lambda settings=None: cloud_storage)
    monkeypatch.setattr('backend.services.report_submission.get_notifier', lambda settings=None: notifier)
    monkeypatch.setattr('backend.cli.get_cloud_storage', lambda settings=None: cloud_storage)

    app = create_app(test_config)

    with app.app_context():
        db.create_all()

    yield app

    # Cleanup
    with app.app_context():
        db.session.remove()
        db.engine.dispose()
    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


@pytest.fixture
def organisation(app):
    """The 'acme' organisation; returns its id."""
    with app.app_context():
        org = Organisation(slug='acme', name='Acme Builders')
        db.session.add(org)
        db.session.commit()
        return org.id


@pytest.fixture
def make_photos():
    """Build file parts for the multipart 'photos' field."""
    def _make(count, filename='photo.jpg', content_type='image/jpeg'):
        return [
            (io.BytesIO(f"image-bytes-{i}".encode()), filename, content_type)
            for i in range(count)
        ]
    return _make


@pytest.fixture
def report_form():
    """A valid daily report form for the 'acme' organisation, without photos."""
    return {
        'orgSlug': 'acme',
        'crewName': 'Crew A',
        'siteNumber': 'S-12',
        'summary': 'Poured footings',
        'finishedPlan': 'true',
        'siteLeftClean': 'true',
    }
