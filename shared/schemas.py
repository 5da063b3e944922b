"""Pydantic schemas for validation and serialization."""
from typing import Optional, List
from pydantic import BaseModel, Field, model_validator, ConfigDict
from shared.utils import DEFAULT_PHOTO_CONTENT_TYPE


class PhotoUpload(BaseModel):
    """One photo attachment as received from the intake form."""
    filename: str = Field(default="")
    content_type: str = Field(default="")
    data: bytes = Field(default=b"")

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def upload_content_type(self) -> str:
        return self.content_type or DEFAULT_PHOTO_CONTENT_TYPE


class DailyReportSubmission(BaseModel):
    """A validated daily report, ready for the submission sequence."""
    org_slug: str = Field(..., min_length=1)
    crew_name: str = Field(..., min_length=1)
    site_number: str = Field(..., min_length=1)
    summary: str = Field(..., min_length=1)
    finished_plan: bool
    not_finished_why: Optional[str] = None
    catchup_plan: Optional[str] = None
    site_left_clean: Optional[bool] = None
    site_left_clean_notes: Optional[str] = None
    photos: List[PhotoUpload] = Field(default_factory=list)

    @model_validator(mode='after')
    def clear_stale_explanations(self):
        """A finished plan never carries explanation or catch-up text."""
        if self.finished_plan:
            self.not_finished_why = None
            self.catchup_plan = None
        return self

    def report_fields(self):
        """Column values for the daily_reports row (organisation/site added by caller)."""
        return {
            'site_identifier': self.site_number,
            'crew_name': self.crew_name,
            'summary': self.summary,
            'finished_plan': self.finished_plan,
            'not_finished_why': self.not_finished_why,
            'catchup_plan': self.catchup_plan,
            'site_left_clean': self.site_left_clean,
            'site_left_clean_notes': self.site_left_clean_notes,
        }


class DailyReportSubmitResponse(BaseModel):
    """JSON body returned by the submission endpoint."""
    ok: bool
    message: Optional[str] = None
    report_id: Optional[str] = Field(None, alias='reportId')
    email_sent: Optional[bool] = Field(None, alias='emailSent')
    email_error: Optional[str] = Field(None, alias='emailError')

    model_config = ConfigDict(populate_by_name=True)

    def to_json(self):
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)
