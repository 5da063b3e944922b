import enum


class SubmissionState(str, enum.Enum):
    """Lifecycle states of a single daily report submission.

    Terminal failure states are carried on the raised SubmissionError;
    every transition is logged.
    """
    RECEIVED = "received"
    VALIDATED = "validated"
    ORG_RESOLVED = "org_resolved"
    REPORT_CREATED = "report_created"
    PHOTOS_UPLOADED = "photos_uploaded"
    PHOTOS_LINKED = "photos_linked"
    NOTIFIED = "notified"
    NOTIFY_FAILED = "notify_failed"
    SUCCEEDED = "succeeded"
    VALIDATION_FAILED = "validation_failed"
    ORG_NOT_FOUND = "org_not_found"
    REPORT_CREATE_FAILED = "report_create_failed"
    UPLOAD_FAILED = "upload_failed"
    LINK_FAILED = "link_failed"


class CleanlinessMode(str, enum.Enum):
    """How the "site left clean" indicator is collected.

    TOGGLE expects a literal "true"/"false" answer, NOTES expects free text.
    """
    TOGGLE = "toggle"
    NOTES = "notes"


class FinishedPlanToken(str, enum.Enum):
    """Literal tokens accepted for the finished-plan flag."""
    TRUE = "true"
    FALSE = "false"
