"""Relational store client for organisations, sites, reports and photo rows."""

import logging
from contextlib import contextmanager
from datetime import timedelta
from threading import Lock
from sqlalchemy.exc import SQLAlchemyError
from shared.models import now
from ..models import db, Organisation, Site, DailyReport, DailyReportPhoto


logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when a relational store operation fails."""
    pass


class ReportStore:
    """Thin row-level client over the Flask-SQLAlchemy session.

    Every write commits on its own: the submission sequence spans the
    object store too, so it compensates explicitly instead of relying on a
    single database transaction.
    """

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    @contextmanager
    def _write(self, operation):
        """Commit the enclosed writes, rolling back and raising StoreError on failure."""
        try:
            yield self.session
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Store operation failed ({operation}): {e}")
            raise StoreError(f"Failed to {operation}: {e}") from e

    @contextmanager
    def _read(self, operation):
        try:
            yield self.session
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Store query failed ({operation}): {e}")
            raise StoreError(f"Failed to {operation}: {e}") from e

    def find_organisation_by_slug(self, slug):
        """Return the Organisation with this slug, or None."""
        with self._read('look up organisation') as session:
            return session.query(Organisation).filter_by(slug=slug).one_or_none()

    def find_active_site(self, organisation_id, site_number):
        """Return the active Site with this number for the organisation, or None."""
        with self._read('look up site') as session:
            return session.query(Site).filter_by(
                organisation_id=organisation_id,
                site_number=site_number,
                active=True,
            ).one_or_none()

    def insert_report(self, organisation_id, site_id=None, **fields):
        """Insert a daily report row.

        Returns:
            str: Identifier of the new report
        """
        with self._write('create report') as session:
            report = DailyReport(organisation_id=organisation_id, site_id=site_id, **fields)
            session.add(report)
            session.flush()
            report_id = report.id
        logger.debug(f"Inserted daily report {report_id}")
        return report_id

    def delete_report(self, report_id):
        """Delete a report row by id.

        Returns:
            int: Number of rows deleted (0 or 1)
        """
        with self._write('delete report') as session:
            deleted = session.query(DailyReport).filter_by(id=report_id).delete(synchronize_session=False)
        return deleted

    def insert_photos(self, report_id, storage_paths):
        """Insert one photo row per storage path in a single batch.

        Args:
            report_id (str): Owning report
            storage_paths (list): Object keys in upload order

        Returns:
            int: Number of rows inserted
        """
        with self._write('save photo records') as session:
            session.add_all([
                DailyReportPhoto(report_id=report_id, storage_path=path, position=position)
                for position, path in enumerate(storage_paths)
            ])
        return len(storage_paths)

    def delete_photos(self, report_id):
        """Delete every photo row for a report.

        Returns:
            int: Number of rows deleted
        """
        with self._write('delete photo records') as session:
            deleted = session.query(DailyReportPhoto).filter_by(report_id=report_id).delete(synchronize_session=False)
        return deleted

    def find_reports_without_photos(self, min_age_minutes=60):
        """Reports with no photo rows created at least min_age_minutes ago.

        A successful submission always links its photos, so these rows are
        left behind only when a rollback itself was interrupted.
        """
        cutoff = now() - timedelta(minutes=min_age_minutes)
        with self._read('find reports without photos') as session:
            return session.query(DailyReport).filter(
                ~DailyReport.photos.any(),
                DailyReport.created_at <= cutoff,
            ).order_by(DailyReport.created_at).all()


# Global instance
_report_store = None
_report_store_lock = Lock()


def get_report_store():
    """Get or create the relational store client (thread-safe)."""
    global _report_store
    if _report_store is None:
        with _report_store_lock:
            # Double-check pattern for thread safety
            if _report_store is None:
                _report_store = ReportStore()
                logger.info("Relational store client initialized")
    return _report_store
