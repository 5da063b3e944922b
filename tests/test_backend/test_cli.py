"""Tests for the operator CLI commands."""
from datetime import timedelta
from backend.models import db, Organisation, Site, DailyReport
from backend.services.report_store import ReportStore
from shared.models import now


def add_stale_report(app, organisation_id, minutes_old=120):
    with app.app_context():
        report_id = ReportStore().insert_report(
            organisation_id=organisation_id,
            site_identifier='S-1',
            crew_name='Crew C',
            summary='Left behind',
            finished_plan=True,
            site_left_clean=True,
            site_left_clean_notes='Yes',
        )
        report = db.session.get(DailyReport, report_id)
        report.created_at = now() - timedelta(minutes=minutes_old)
        db.session.commit()
        return report_id


def test_init_db(runner):
    result = runner.invoke(args=['init-db'])
    assert result.exit_code == 0
    assert 'Initialized the database' in result.output


def test_create_organisation(app, runner):
    result = runner.invoke(args=['create-organisation', 'northwind', '--name', 'Northwind Civil'])

    assert result.exit_code == 0
    with app.app_context():
        org = Organisation.query.filter_by(slug='northwind').one()
        assert org.name == 'Northwind Civil'


def test_create_organisation_duplicate(runner, organisation):
    result = runner.invoke(args=['create-organisation', 'acme'])

    assert result.exit_code != 0
    assert "already exists" in result.output


def test_create_site(app, runner, organisation):
    result = runner.invoke(args=['create-site', 'acme', 'S-12', '--name', 'Main St'])

    assert result.exit_code == 0
    with app.app_context():
        site = Site.query.filter_by(site_number='S-12').one()
        assert site.organisation_id == organisation
        assert site.active is True


def test_create_inactive_site(app, runner, organisation):
    result = runner.invoke(args=['create-site', 'acme', 'S-13', '--inactive'])

    assert result.exit_code == 0
    with app.app_context():
        assert Site.query.filter_by(site_number='S-13').one().active is False


def test_create_site_unknown_organisation(runner):
    result = runner.invoke(args=['create-site', 'nobody', 'S-1'])

    assert result.exit_code != 0
    assert "No organisation with slug 'nobody'" in result.output


def test_check_orphans_clean(runner, organisation):
    result = runner.invoke(args=['check-orphans'])

    assert result.exit_code == 0
    assert 'No orphaned reports found' in result.output


def test_check_orphans_reports_without_fix(app, runner, organisation, cloud_storage):
    report_id = add_stale_report(app, organisation)

    result = runner.invoke(args=['check-orphans'])

    assert result.exit_code == 0
    assert 'Found 1 orphaned reports' in result.output
    assert report_id in result.output
    assert 'Use --fix' in result.output
    with app.app_context():
        assert db.session.get(DailyReport, report_id) is not None


def test_check_orphans_ignores_recent_reports(app, runner, organisation):
    add_stale_report(app, organisation, minutes_old=5)

    result = runner.invoke(args=['check-orphans', '--min-age-minutes', '60'])

    assert 'No orphaned reports found' in result.output


def test_check_orphans_fix_purges_report_and_objects(app, runner, organisation, cloud_storage):
    report_id = add_stale_report(app, organisation)
    cloud_storage.objects[f"acme/{report_id}/left.jpg"] = (b'data', 'image/jpeg')
    cloud_storage.objects['acme/other-report/keep.jpg'] = (b'data', 'image/jpeg')

    result = runner.invoke(args=['check-orphans', '--fix'])

    assert result.exit_code == 0
    assert 'Deleted 1 reports and 1 stored photos' in result.output
    assert list(cloud_storage.objects) == ['acme/other-report/keep.jpg']
    with app.app_context():
        assert db.session.get(DailyReport, report_id) is None


def test_check_orphans_fix_keeps_report_when_objects_remain(app, runner, organisation, cloud_storage):
    report_id = add_stale_report(app, organisation)
    key = f"acme/{report_id}/stuck.jpg"
    cloud_storage.objects[key] = (b'data', 'image/jpeg')
    cloud_storage.fail_delete.add(key)

    result = runner.invoke(args=['check-orphans', '--fix'])

    assert f"Could not purge report {report_id}" in result.output
    with app.app_context():
        assert db.session.get(DailyReport, report_id) is not None
