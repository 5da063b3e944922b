import click
import logging
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy.exc import IntegrityError
from .models import db, Organisation, Site
from .services.cloud_storage import get_cloud_storage
from .services.report_store import get_report_store
from .utils import get_orphaned_reports, purge_report

logger = logging.getLogger(__name__)


@click.command('init-db')
@with_appcontext
def init_db_command():
    """Create the database tables if they do not exist."""
    logger.info("Starting database initialization")
    db.create_all()
    logger.info("Database initialization completed successfully")
    click.echo('Initialized the database.')


@click.command('create-organisation')
@click.argument('slug')
@click.option('--name', default='', help='Display name for the organisation')
@with_appcontext
def create_organisation_command(slug, name):
    """Register an organisation so its crews can submit reports."""
    slug = slug.strip()
    if not slug:
        raise click.BadParameter('Slug must not be empty', param_hint='SLUG')

    organisation = Organisation(slug=slug, name=name or slug)
    db.session.add(organisation)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise click.ClickException(f"Organisation '{slug}' already exists")

    logger.info(f"Created organisation {slug} ({organisation.id})")
    click.echo(f"Created organisation '{slug}' with id {organisation.id}")


@click.command('create-site')
@click.argument('org_slug')
@click.argument('site_number')
@click.option('--name', default='', help='Display name for the site')
@click.option('--inactive', is_flag=True, help='Create the site as inactive')
@with_appcontext
def create_site_command(org_slug, site_number, name, inactive):
    """Register a site under an organisation."""
    organisation = Organisation.query.filter_by(slug=org_slug).one_or_none()
    if organisation is None:
        raise click.ClickException(f"No organisation with slug '{org_slug}'")

    site = Site(
        organisation_id=organisation.id,
        site_number=site_number.strip(),
        name=name,
        active=not inactive,
    )
    db.session.add(site)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise click.ClickException(f"Site '{site_number}' already exists for '{org_slug}'")

    logger.info(f"Created site {site_number} for organisation {org_slug} ({site.id})")
    click.echo(f"Created site '{site.site_number}' for '{org_slug}' with id {site.id}")


@click.command('check-orphans')
@click.option('--fix', is_flag=True, help='Delete orphaned reports and their stored photos')
@click.option('--min-age-minutes', default=60, show_default=True, type=int,
              help='Only consider reports older than this')
@with_appcontext
def check_orphans_command(fix, min_age_minutes):
    """Find daily reports that were left without photo records."""
    store = get_report_store()
    reports = get_orphaned_reports(store, min_age_minutes=min_age_minutes)

    if not reports:
        click.echo("No orphaned reports found")
        return

    click.echo(f"Found {len(reports)} orphaned reports:")
    for report in reports[:10]:  # Show first 10
        click.echo(f"  Report {report.id}: '{report.site_identifier}' by '{report.crew_name}' at {report.created_at}")
    if len(reports) > 10:
        click.echo(f"  ... and {len(reports) - 10} more")

    if not fix:
        click.echo("\nUse --fix to delete these orphaned reports")
        return

    click.echo("\nDeleting orphaned reports...")
    cloud_storage = get_cloud_storage(current_app.config['SETTINGS'])
    deleted_reports = 0
    deleted_objects = 0
    for report in reports:
        summary = purge_report(report, store, cloud_storage)
        deleted_reports += summary['reports']
        deleted_objects += summary['objects']
        if not summary['reports']:
            click.echo(f"  Could not purge report {report.id}")

    click.echo(f"Deleted {deleted_reports} reports and {deleted_objects} stored photos")
