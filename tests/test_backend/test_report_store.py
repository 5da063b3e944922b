"""Tests for the relational store client."""
import pytest
from datetime import timedelta
from unittest.mock import Mock
from sqlalchemy.exc import OperationalError
from backend.models import db, DailyReport, DailyReportPhoto, Site
from backend.services.report_store import ReportStore, StoreError, get_report_store
from shared.models import now


@pytest.fixture
def store():
    return ReportStore()


def insert_sample_report(store, organisation_id, **overrides):
    fields = dict(
        site_identifier='S-1',
        crew_name='Crew B',
        summary='Roofing',
        finished_plan=True,
        site_left_clean=True,
        site_left_clean_notes='Yes',
    )
    fields.update(overrides)
    return store.insert_report(organisation_id=organisation_id, **fields)


def photo_row_count(report_id):
    return db.session.query(DailyReportPhoto).filter_by(report_id=report_id).count()


class TestReportStore:

    def test_find_organisation_by_slug(self, app, organisation, store):
        with app.app_context():
            assert store.find_organisation_by_slug('acme').id == organisation
            assert store.find_organisation_by_slug('missing') is None

    def test_find_active_site_ignores_inactive(self, app, organisation, store):
        with app.app_context():
            db.session.add(Site(organisation_id=organisation, site_number='A1', active=True))
            db.session.add(Site(organisation_id=organisation, site_number='B2', active=False))
            db.session.commit()

            assert store.find_active_site(organisation, 'A1').site_number == 'A1'
            assert store.find_active_site(organisation, 'B2') is None
            assert store.find_active_site(organisation, 'C3') is None

    def test_insert_and_delete_report(self, app, organisation, store):
        with app.app_context():
            report_id = insert_sample_report(store, organisation)
            assert db.session.get(DailyReport, report_id).crew_name == 'Crew B'

            assert store.delete_report(report_id) == 1
            assert store.delete_report(report_id) == 0

    def test_insert_photos_keeps_order(self, app, organisation, store):
        with app.app_context():
            report_id = insert_sample_report(store, organisation)
            paths = [f"acme/{report_id}/{name}.jpg" for name in ('c', 'a', 'b')]

            assert store.insert_photos(report_id, paths) == 3
            assert photo_row_count(report_id) == 3

            db.session.expire_all()
            report = db.session.get(DailyReport, report_id)
            assert [photo.storage_path for photo in report.photos] == paths

            assert store.delete_photos(report_id) == 3
            assert photo_row_count(report_id) == 0

    def test_duplicate_storage_path_raises_store_error(self, app, organisation, store):
        with app.app_context():
            report_id = insert_sample_report(store, organisation)
            path = f"acme/{report_id}/same.jpg"

            with pytest.raises(StoreError, match='Failed to save photo records'):
                store.insert_photos(report_id, [path, path])
            assert photo_row_count(report_id) == 0

    def test_find_reports_without_photos(self, app, organisation, store):
        with app.app_context():
            orphan_id = insert_sample_report(store, organisation)
            complete_id = insert_sample_report(store, organisation)
            store.insert_photos(complete_id, [f"acme/{complete_id}/x.jpg"])

            found = [report.id for report in store.find_reports_without_photos(min_age_minutes=0)]
            assert found == [orphan_id]

            # Too recent to be considered abandoned
            assert store.find_reports_without_photos(min_age_minutes=60) == []

            report = db.session.get(DailyReport, orphan_id)
            report.created_at = now() - timedelta(hours=2)
            db.session.commit()
            assert [r.id for r in store.find_reports_without_photos(min_age_minutes=60)] == [orphan_id]

    def test_query_failure_raises_store_error(self):
        session = Mock()
        session.query.side_effect = OperationalError('SELECT 1', {}, Exception('database is locked'))
        store = ReportStore(session=session)

        with pytest.raises(StoreError, match='Failed to look up organisation'):
            store.find_organisation_by_slug('acme')
        session.rollback.assert_called_once()

    def test_write_failure_rolls_back(self):
        session = Mock()
        session.commit.side_effect = OperationalError('INSERT', {}, Exception('disk full'))
        store = ReportStore(session=session)

        with pytest.raises(StoreError, match='Failed to delete photo records'):
            store.delete_photos('report-1')
        session.rollback.assert_called_once()

    def test_get_report_store_is_singleton(self):
        assert get_report_store() is get_report_store()

    def test_exposes_only_submission_operations(self):
        public = {name for name in dir(ReportStore) if not name.startswith('_')}
        assert 'count_photos' not in public
