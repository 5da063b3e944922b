"""Rendering of the notification email sent after a successful submission."""

from pathlib import Path
from jinja2 import Environment, FileSystemLoader, select_autoescape


TEMPLATE_DIR = Path(__file__).parent.parent / 'templates'
TEMPLATE_NAME = 'daily_report_email.html'

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(['html', 'xml']),
)


def build_subject(submission):
    return f"Daily report: {submission.site_number} – {submission.crew_name}"


def render_notification_html(submission, report_id, photo_links, photo_count, link_ttl_seconds):
    """Render the HTML body; every user-supplied value is escaped by the template engine.

    Args:
        submission: DailyReportSubmission that was saved
        report_id (str): Identifier of the saved report
        photo_links (list): Signed URLs that could be generated (may be empty)
        photo_count (int): Number of photos actually stored
        link_ttl_seconds (int): Lifetime of the signed URLs
    """
    template = _env.get_template(TEMPLATE_NAME)
    return template.render(
        submission=submission,
        org_slug=submission.org_slug,
        report_id=report_id,
        photo_links=photo_links,
        photo_count=photo_count,
        link_expiry_days=max(1, link_ttl_seconds // 86400),
    )
