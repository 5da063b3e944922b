"""Daily reports blueprint for Flask API."""
import logging
from flask import Blueprint, current_app, jsonify, request
from shared.enums import SubmissionState
from shared.schemas import PhotoUpload, DailyReportSubmitResponse
from shared.validation import Validator, ValidationError
from ..services.report_submission import SubmissionError, build_submission_service
from ..utils import api_error, handle_api_exception

logger = logging.getLogger(__name__)


bp = Blueprint('daily_reports', __name__, url_prefix='/api')


def _read_photos():
    """Collect the 'photos' file parts in submission order."""
    photos = []
    for storage in request.files.getlist('photos'):
        photos.append(PhotoUpload(
            filename=storage.filename or '',
            content_type=storage.mimetype or '',
            data=storage.read(),
        ))
    return photos


def _log_state(state, **fields):
    logger.info(f"Daily report submission -> {state.value}", extra={'extra_fields': {'state': state.value, **fields}})


@bp.route('/daily-report', methods=['POST'])
def submit_daily_report():
    """Accept a multipart daily report with 3-10 photos."""
    settings = current_app.config['SETTINGS']
    _log_state(SubmissionState.RECEIVED)

    try:
        submission = Validator.validate_daily_report_data(
            request.form, _read_photos(), settings.cleanliness_mode
        )
    except ValidationError as e:
        _log_state(SubmissionState.VALIDATION_FAILED, field=e.field, code=e.code)
        return api_error(e.message, 400, details={'field': e.field, 'code': e.code})
    _log_state(SubmissionState.VALIDATED, org_slug=submission.org_slug, photo_count=len(submission.photos))

    try:
        result = build_submission_service(settings).submit(submission)
    except SubmissionError as e:
        log_level = 'warning' if e.status_code < 500 else 'error'
        return api_error(
            e.public_message(include_detail=settings.is_development),
            e.status_code,
            log_level,
            details={'state': e.state.value, 'detail': e.detail},
        )
    except Exception as e:
        return handle_api_exception(e, 'submit daily report', expose_detail=settings.is_development)

    response = DailyReportSubmitResponse(
        ok=True,
        report_id=result.report_id,
        email_sent=result.email_sent,
        email_error=result.email_error,
    )
    return jsonify(response.to_json()), 200
