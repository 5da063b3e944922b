"""Input validation utilities."""
from shared.enums import CleanlinessMode, FinishedPlanToken
from shared.schemas import DailyReportSubmission


MIN_PHOTOS = 3
MAX_PHOTOS = 10


class ValidationError(Exception):
    """Raised when input validation fails.

    Attributes:
        field: Form field the error refers to (None for whole-form errors)
        code: 'missing' when a required value was absent, 'invalid' otherwise
    """

    def __init__(self, message, field=None, code='invalid'):
        super().__init__(message)
        self.message = message
        self.field = field
        self.code = code


class Validator:
    """Input validation utilities."""

    BOOLEAN_TOKENS = [token.value for token in FinishedPlanToken]

    @staticmethod
    def clean_text(value):
        """Normalise a raw form value to a stripped string ('' when absent)."""
        if value is None:
            return ''
        return str(value).strip()

    @staticmethod
    def validate_required(value, field_name, message=None):
        """Validate that a required field is not empty."""
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(message or f"{field_name} is required", field=field_name, code='missing')
        return value

    @staticmethod
    def validate_choice(value, field_name, valid_choices, message=None):
        """Validate that value is in list of valid choices.

        An empty value is reported as missing, anything else outside the
        choices as invalid; both share the same user-facing message.
        """
        if value not in valid_choices:
            code = 'missing' if not value else 'invalid'
            raise ValidationError(
                message or f"{field_name} must be one of: {', '.join(str(c) for c in valid_choices)}",
                field=field_name,
                code=code,
            )
        return value

    @staticmethod
    def filter_photos(photos):
        """Drop zero-byte attachments; an empty file input still posts a part."""
        return [photo for photo in photos if photo.size > 0]

    @staticmethod
    def validate_photo_count(photos, min_count=MIN_PHOTOS, max_count=MAX_PHOTOS):
        """Validate the number of photos is within the inclusive bounds."""
        if len(photos) < min_count or len(photos) > max_count:
            raise ValidationError(
                f"Must upload between {min_count} and {max_count} photos",
                field='photos',
                code='invalid',
            )
        return photos

    @staticmethod
    def validate_cleanliness(form, mode):
        """Validate the "site left clean" answer for the configured mode.

        Returns:
            tuple: (site_left_clean, site_left_clean_notes)
        """
        message = 'Please indicate if the site was left clean / tools in site box / materials under cover'
        if CleanlinessMode(mode) == CleanlinessMode.NOTES:
            notes = Validator.clean_text(form.get('siteLeftCleanNotes'))
            Validator.validate_required(notes, 'siteLeftCleanNotes', message)
            return None, notes

        raw = Validator.clean_text(form.get('siteLeftClean'))
        Validator.validate_choice(raw, 'siteLeftClean', Validator.BOOLEAN_TOKENS, message)
        left_clean = raw == FinishedPlanToken.TRUE.value
        return left_clean, 'Yes' if left_clean else 'No'

    @staticmethod
    def validate_daily_report_data(form, photos, cleanliness_mode=CleanlinessMode.TOGGLE):
        """Validate a daily report form submission.

        Rules are checked in a fixed order and the first failure wins.

        Args:
            form: Mapping of form field name to raw string value
            photos (list): PhotoUpload attachments in submission order
            cleanliness_mode: CleanlinessMode (or its value) for this deployment

        Returns:
            DailyReportSubmission: Validated, normalised submission

        Raises:
            ValidationError: On the first rule that fails
        """
        org_slug = Validator.clean_text(form.get('orgSlug'))
        crew_name = Validator.clean_text(form.get('crewName'))
        site_number = Validator.clean_text(form.get('siteNumber'))
        summary = Validator.clean_text(form.get('summary'))
        finished_plan_raw = Validator.clean_text(form.get('finishedPlan'))
        not_finished_why = Validator.clean_text(form.get('notFinishedWhy'))
        catchup_plan = Validator.clean_text(form.get('catchupPlan'))

        photos = Validator.filter_photos(photos)

        Validator.validate_required(org_slug, 'orgSlug', 'Organisation is required')
        Validator.validate_required(crew_name, 'crewName', 'Crew name is required')
        Validator.validate_required(site_number, 'siteNumber', 'Site Number / Name is required')
        Validator.validate_required(summary, 'summary', "Today's summary is required")

        Validator.validate_choice(
            finished_plan_raw, 'finishedPlan', Validator.BOOLEAN_TOKENS,
            'Please indicate if you finished everything planned today'
        )
        finished_plan = finished_plan_raw == FinishedPlanToken.TRUE.value

        if not finished_plan:
            Validator.validate_required(
                not_finished_why, 'notFinishedWhy', 'Please explain what was not finished and why'
            )
            Validator.validate_required(
                catchup_plan, 'catchupPlan', 'Please provide a plan to make up the lost time'
            )

        site_left_clean, site_left_clean_notes = Validator.validate_cleanliness(form, cleanliness_mode)

        Validator.validate_photo_count(photos)

        return DailyReportSubmission(
            org_slug=org_slug,
            crew_name=crew_name,
            site_number=site_number,
            summary=summary,
            finished_plan=finished_plan,
            not_finished_why=None if finished_plan else not_finished_why,
            catchup_plan=None if finished_plan else catchup_plan,
            site_left_clean=site_left_clean,
            site_left_clean_notes=site_left_clean_notes,
            photos=photos,
        )
