"""Backend utility functions for the daily report service."""
from flask import jsonify
from shared.utils import report_storage_prefix
from .services.cloud_storage import BlobStoreError
import logging


logger = logging.getLogger(__name__)


def api_error(message, status_code=400, log_level='warning', details=None):
    """
    Standardized API error response with consistent logging.

    Args:
        message (str): Error message for the client
        status_code (int): HTTP status code
        log_level (str): Logging level ('debug', 'info', 'warning', 'error', 'critical')
        details (dict, optional): Additional details for logging

    Returns:
        Flask response: JSON error response
    """
    # Log the error with appropriate level
    log_func = getattr(logger, log_level, logger.warning)
    if details:
        log_func(f"API Error ({status_code}): {message} - Details: {details}")
    else:
        log_func(f"API Error ({status_code}): {message}")

    return jsonify({'ok': False, 'message': message}), status_code


def handle_api_exception(e, operation="operation", status_code=500, expose_detail=False):
    """
    Handle unexpected exceptions in API endpoints.

    The client only sees a generic message unless expose_detail is set
    (development deployments).

    Args:
        e (Exception): The exception that occurred
        operation (str): Description of the operation being performed
        status_code (int): HTTP status code to return
        expose_detail (bool): Append the exception text to the message

    Returns:
        Flask response: JSON error response
    """
    logger.error(f"Exception during {operation}: {str(e)}", exc_info=True)
    message = 'Internal server error'
    if expose_detail:
        message = f"{message}: {e}"
    return api_error(message, status_code, 'error')


def get_orphaned_reports(store, min_age_minutes=60):
    """
    Find report rows left behind by an interrupted rollback.

    Args:
        store: ReportStore
        min_age_minutes (int): Ignore reports younger than this, they may still be in flight

    Returns:
        list: DailyReport rows with no photo records
    """
    reports = store.find_reports_without_photos(min_age_minutes=min_age_minutes)
    if reports:
        logger.warning(f"Found {len(reports)} daily report(s) without photo records")
    return reports


def purge_report(report, store, cloud_storage):
    """
    Delete an orphaned report and any objects stored under its prefix.

    Objects go first so a failure leaves the row in place for the next run.

    Args:
        report: DailyReport row
        store: ReportStore
        cloud_storage: CloudStorageService

    Returns:
        dict: Summary of deleted records
    """
    summary = {'reports': 0, 'objects': 0, 'objects_failed': 0}

    prefix = report_storage_prefix(report.organisation.slug, report.id, site_id=report.site_id)
    try:
        keys = cloud_storage.list_keys(prefix)
    except BlobStoreError as e:
        logger.error(f"Could not list objects for report {report.id}: {e}")
        summary['objects_failed'] = -1
        return summary

    failed = cloud_storage.delete(keys)
    summary['objects'] = len(keys) - len(failed)
    summary['objects_failed'] = len(failed)
    if failed:
        logger.error(f"Keeping report {report.id}: {len(failed)} object(s) could not be deleted")
        return summary

    summary['reports'] = store.delete_report(report.id)
    logger.info(f"Purged orphaned report {report.id}: {summary}")
    return summary
