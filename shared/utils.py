"""Shared utility functions for the daily site report service.

Storage key construction lives here so the submission path and the
operator tooling always agree on where a report's photos live.
"""

import uuid


DEFAULT_PHOTO_EXTENSION = 'jpg'
DEFAULT_PHOTO_CONTENT_TYPE = 'image/jpeg'


def photo_extension(filename):
    """Return the lower-cased extension of an uploaded file name.

    Falls back to DEFAULT_PHOTO_EXTENSION when the name has no extension or
    the extension is not purely alphanumeric (it ends up in an object key).

    Args:
        filename (str): Original client-side file name, may be empty

    Returns:
        str: Extension without the leading dot
    """
    if not filename or '.' not in filename:
        return DEFAULT_PHOTO_EXTENSION

    ext = filename.rsplit('.', 1)[1].strip().lower()
    if not ext or not ext.isascii() or not ext.isalnum():
        return DEFAULT_PHOTO_EXTENSION
    return ext


def report_storage_prefix(org_slug, report_id, site_id=None):
    """Object key prefix under which every photo of one report is stored.

    Args:
        org_slug (str): Organisation slug (top-level namespace)
        report_id (str): Identifier of the owning report
        site_id (str, optional): Linked site identifier, when sites are structured

    Returns:
        str: Prefix ending in '/'
    """
    if site_id:
        return f"{org_slug}/{site_id}/{report_id}/"
    return f"{org_slug}/{report_id}/"


def build_storage_key(org_slug, report_id, filename, site_id=None):
    """Generate a globally unique object key for one photo of a report.

    Args:
        org_slug (str): Organisation slug
        report_id (str): Identifier of the owning report
        filename (str): Original file name, used only for its extension
        site_id (str, optional): Linked site identifier

    Returns:
        str: e.g. 'acme/<report_id>/<uuid>.jpg'
    """
    prefix = report_storage_prefix(org_slug, report_id, site_id)
    return f"{prefix}{uuid.uuid4()}.{photo_extension(filename)}"
