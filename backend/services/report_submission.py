"""Daily report submission: create report, upload photos, link them, notify.

The relational store and the object store share no transaction, so every
step after the report row exists compensates explicitly on failure:
photo rows, then uploaded objects, then the report row. Cleanup failures
are logged and never change the outcome reported to the caller.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from shared.enums import SubmissionState
from shared.utils import build_storage_key
from .cloud_storage import BlobStoreError, get_cloud_storage
from .notifier import get_notifier
from .report_notification import build_subject, render_notification_html
from .report_store import StoreError, get_report_store


logger = logging.getLogger(__name__)


class SubmissionError(Exception):
    """A submission ended in a terminal failure state."""

    status_code = 500

    def __init__(self, message, state, detail=None):
        super().__init__(message)
        self.message = message
        self.state = state
        self.detail = detail

    def public_message(self, include_detail=False):
        if include_detail and self.detail:
            return f"{self.message}: {self.detail}"
        return self.message


class NotFoundError(SubmissionError):
    """Unknown organisation or site; nothing has been written."""
    status_code = 404


class PersistenceError(SubmissionError):
    """A store write failed; anything created for the submission was rolled back."""
    status_code = 500


@dataclass
class SubmissionResult:
    report_id: str
    photo_count: int
    email_sent: bool
    email_error: Optional[str] = None


class ReportSubmissionService:
    """Executes the write sequence for one validated daily report."""

    def __init__(self, store, cloud_storage, notifier, settings):
        self.store = store
        self.cloud_storage = cloud_storage
        self.notifier = notifier
        self.settings = settings

    def submit(self, submission):
        """
        Persist a validated submission and send the notification.

        Args:
            submission: DailyReportSubmission

        Returns:
            SubmissionResult

        Raises:
            NotFoundError: Unknown organisation or site (no writes performed)
            PersistenceError: A store step failed (already rolled back)
        """
        org_slug = submission.org_slug
        organisation = self._resolve_organisation(org_slug)
        site = self._resolve_site(organisation, submission.site_number)
        self._log_state(SubmissionState.ORG_RESOLVED, org_slug=org_slug)

        site_id = site.id if site is not None else None
        try:
            report_id = self.store.insert_report(
                organisation_id=organisation.id,
                site_id=site_id,
                **submission.report_fields()
            )
        except StoreError as e:
            self._log_state(SubmissionState.REPORT_CREATE_FAILED, org_slug=org_slug)
            raise PersistenceError(
                'Failed to create report', SubmissionState.REPORT_CREATE_FAILED, detail=str(e)
            ) from e
        self._log_state(SubmissionState.REPORT_CREATED, org_slug=org_slug, report_id=report_id)

        uploaded_keys = []
        try:
            self._upload_photos(submission, report_id, site_id, uploaded_keys)
            self._link_photos(report_id, uploaded_keys)
        except SubmissionError:
            raise
        except BaseException:
            logger.error(f"Submission for report {report_id} interrupted; cleaning up", exc_info=True)
            self._rollback(report_id, uploaded_keys, remove_photo_rows=True)
            raise

        photo_links = self._sign_links(uploaded_keys)
        email_sent, email_error = self._notify(submission, report_id, photo_links, len(uploaded_keys))

        self._log_state(
            SubmissionState.SUCCEEDED, org_slug=org_slug, report_id=report_id,
            photo_count=len(uploaded_keys), email_sent=email_sent,
        )
        return SubmissionResult(
            report_id=report_id,
            photo_count=len(uploaded_keys),
            email_sent=email_sent,
            email_error=email_error,
        )

    def _resolve_organisation(self, org_slug):
        try:
            organisation = self.store.find_organisation_by_slug(org_slug)
        except StoreError as e:
            raise PersistenceError(
                'Failed to look up organisation', SubmissionState.ORG_NOT_FOUND, detail=str(e)
            ) from e
        if organisation is None:
            logger.warning(f"Organisation lookup failed for slug {org_slug!r}")
            raise NotFoundError(
                'Invalid organisation', SubmissionState.ORG_NOT_FOUND,
                detail=f"no organisation with slug '{org_slug}'"
            )
        return organisation

    def _resolve_site(self, organisation, site_number):
        """Return the linked Site when structured sites are enabled, else None."""
        if not self.settings.site_lookup_enabled:
            return None
        try:
            site = self.store.find_active_site(organisation.id, site_number)
        except StoreError as e:
            raise PersistenceError(
                'Failed to look up site', SubmissionState.ORG_NOT_FOUND, detail=str(e)
            ) from e
        if site is None:
            logger.warning(f"No active site {site_number!r} for organisation {organisation.slug!r}")
            raise NotFoundError(
                'Invalid site', SubmissionState.ORG_NOT_FOUND,
                detail=f"no active site '{site_number}' for organisation '{organisation.slug}'"
            )
        return site

    def _upload_photos(self, submission, report_id, site_id, uploaded_keys):
        """Upload every photo in order; all-or-nothing.

        uploaded_keys is filled in place so the caller knows exactly which
        objects exist if this is interrupted.
        """
        for index, photo in enumerate(submission.photos, start=1):
            key = build_storage_key(submission.org_slug, report_id, photo.filename, site_id=site_id)
            try:
                self.cloud_storage.upload(key, photo.data, photo.upload_content_type, overwrite=False)
            except BlobStoreError as e:
                logger.error(f"Error uploading photo {index}/{len(submission.photos)} for report {report_id}: {e}")
                self._log_state(SubmissionState.UPLOAD_FAILED, report_id=report_id, photo_index=index)
                self._rollback(report_id, uploaded_keys)
                raise PersistenceError(
                    'Failed to upload all photos. Please try again.',
                    SubmissionState.UPLOAD_FAILED, detail=str(e)
                ) from e
            uploaded_keys.append(key)
        self._log_state(SubmissionState.PHOTOS_UPLOADED, report_id=report_id, photo_count=len(uploaded_keys))

    def _link_photos(self, report_id, uploaded_keys):
        try:
            self.store.insert_photos(report_id, uploaded_keys)
        except StoreError as e:
            logger.error(f"Error creating photo records for report {report_id}: {e}")
            self._log_state(SubmissionState.LINK_FAILED, report_id=report_id)
            self._rollback(report_id, uploaded_keys, remove_photo_rows=True)
            raise PersistenceError(
                'Failed to save photo records. Please try again.',
                SubmissionState.LINK_FAILED, detail=str(e)
            ) from e
        self._log_state(SubmissionState.PHOTOS_LINKED, report_id=report_id, photo_count=len(uploaded_keys))

    def _rollback(self, report_id, uploaded_keys, remove_photo_rows=False):
        """Undo a partial submission in reverse creation order. Never raises."""
        logger.warning(
            f"Rolling back report {report_id} ({len(uploaded_keys)} uploaded photo(s))",
            extra={'extra_fields': {'report_id': report_id, 'photo_count': len(uploaded_keys)}}
        )

        if remove_photo_rows:
            try:
                self.store.delete_photos(report_id)
            except Exception as e:
                logger.error(f"Rollback: failed to delete photo records for report {report_id}: {e}")

        if uploaded_keys:
            try:
                failed = self.cloud_storage.delete(list(uploaded_keys))
                if failed:
                    logger.error(f"Rollback: {len(failed)} object(s) left behind for report {report_id}: {failed}")
            except Exception as e:
                logger.error(f"Rollback: failed to delete uploaded photos for report {report_id}: {e}")

        try:
            self.store.delete_report(report_id)
        except Exception as e:
            logger.error(f"Rollback: failed to delete report {report_id}: {e}")

    def _sign_links(self, uploaded_keys):
        """Signed read links for the notification; photos that cannot be signed are skipped."""
        links = []
        for key in uploaded_keys:
            try:
                url = self.cloud_storage.create_signed_url(key, self.settings.signed_url_ttl)
            except Exception as e:
                logger.warning(f"Could not create signed URL for {key}: {e}")
                continue
            if url:
                links.append(url)
        return links

    def _notify(self, submission, report_id, photo_links, photo_count):
        """Send the notification email.

        Returns:
            tuple: (email_sent, email_error); failures are soft and never raised
        """
        if not self.notifier.is_configured:
            logger.warning("RESEND_API_KEY not set; skipping notification email")
            self._log_state(SubmissionState.NOTIFY_FAILED, report_id=report_id)
            return False, 'Notification email is not configured'

        try:
            html = render_notification_html(
                submission, report_id, photo_links, photo_count, self.settings.signed_url_ttl
            )
            logger.info(f"Sending notification email to {self.settings.notify_email} from {self.settings.resend_from_email}")
            result = self.notifier.send(
                from_address=self.settings.resend_from_email,
                to=[self.settings.notify_email],
                subject=build_subject(submission),
                html=html,
            )
        except Exception as e:
            logger.error(f"Failed to send notification email for report {report_id}: {e}", exc_info=True)
            self._log_state(SubmissionState.NOTIFY_FAILED, report_id=report_id)
            return False, str(e)

        if not result.sent:
            self._log_state(SubmissionState.NOTIFY_FAILED, report_id=report_id)
            return False, result.error

        self._log_state(SubmissionState.NOTIFIED, report_id=report_id)
        return True, None

    @staticmethod
    def _log_state(state, **fields):
        logger.info(
            f"Daily report submission -> {state.value}",
            extra={'extra_fields': {'state': state.value, **fields}}
        )


def build_submission_service(settings):
    """Wire the submission service to the process-wide store clients."""
    return ReportSubmissionService(
        store=get_report_store(),
        cloud_storage=get_cloud_storage(settings),
        notifier=get_notifier(settings),
        settings=settings,
    )
