import uuid
from datetime import datetime
from zoneinfo import ZoneInfo
from sqlalchemy import Column, Integer, String, Boolean, Text, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()

# Crews report in local time; stored naive in SQLite, aware elsewhere.
APP_TIMEZONE = ZoneInfo('Australia/Sydney')


def now():
    """Return current datetime in application timezone (timezone-aware).

    Note: When stored in SQLite, timezone info is stripped (SQLite limitation).
    """
    return datetime.now(APP_TIMEZONE)


def new_id():
    """Return a fresh opaque identifier for a row."""
    return str(uuid.uuid4())


class Organisation(Base):
    __tablename__ = 'organisations'
    id = Column(String(36), primary_key=True, default=new_id)
    slug = Column(String(100), unique=True, nullable=False)
    name = Column(String(200), nullable=False, server_default="")
    created_at = Column(DateTime, default=now)
    sites = relationship('Site', backref='organisation', lazy='select')
    reports = relationship('DailyReport', backref='organisation', lazy='select')


class Site(Base):
    __tablename__ = 'sites'
    id = Column(String(36), primary_key=True, default=new_id)
    organisation_id = Column(String(36), ForeignKey('organisations.id', ondelete='CASCADE'), nullable=False, index=True)
    site_number = Column(String(100), nullable=False)
    name = Column(String(200), server_default="")
    active = Column(Boolean, default=True, nullable=False, server_default='1')
    created_at = Column(DateTime, default=now)

    __table_args__ = (
        UniqueConstraint('organisation_id', 'site_number', name='uq_site_organisation_number'),
    )


class DailyReport(Base):
    __tablename__ = 'daily_reports'
    id = Column(String(36), primary_key=True, default=new_id)
    organisation_id = Column(String(36), ForeignKey('organisations.id', ondelete='CASCADE'), nullable=False, index=True)
    site_id = Column(String(36), ForeignKey('sites.id', ondelete='SET NULL'), nullable=True, index=True)
    site_identifier = Column(String(200), nullable=False)
    crew_name = Column(String(200), nullable=False)
    summary = Column(Text, nullable=False)
    finished_plan = Column(Boolean, nullable=False)
    not_finished_why = Column(Text, nullable=True)
    catchup_plan = Column(Text, nullable=True)
    site_left_clean = Column(Boolean, nullable=True)
    site_left_clean_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=now, index=True)
    photos = relationship(
        'DailyReportPhoto', backref='report', lazy='select',
        cascade="all, delete-orphan", order_by='DailyReportPhoto.position'
    )


class DailyReportPhoto(Base):
    __tablename__ = 'daily_report_photos'
    id = Column(Integer, primary_key=True, nullable=False)
    report_id = Column(String(36), ForeignKey('daily_reports.id', ondelete='CASCADE'), nullable=False, index=True)
    storage_path = Column(String(1000), nullable=False, unique=True)
    position = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime, default=now)

Index('idx_report_photo_position', DailyReportPhoto.report_id, DailyReportPhoto.position)
