"""Saved report configurations and run history."""
from churchconnect import db
from churchconnect.models.base import BaseModel, ChurchScopedMixin
from churchconnect.utils.helpers import utcnow

class ReportConfig(ChurchScopedMixin, BaseModel):
    __tablename__ = 'report_configs'

    church_id = db.Column(db.Integer, db.ForeignKey('churches.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    report_type = db.Column(db.String(50), nullable=False)
    description = db.Column(db.Text, nullable=True)
    parameters = db.Column(db.JSON, nullable=False, default=dict)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey('church_users.id', ondelete='SET NULL'), nullable=True)

class ReportRun(ChurchScopedMixin, BaseModel):
    """Who generated which report with which parameters."""

    __tablename__ = 'report_runs'

    church_id = db.Column(db.Integer, db.ForeignKey('churches.id', ondelete='CASCADE'), nullable=False, index=True)
    report_config_id = db.Column(db.Integer, db.ForeignKey('report_configs.id', ondelete='SET NULL'), nullable=True)
    report_type = db.Column(db.String(50), nullable=False)
    parameters = db.Column(db.JSON, nullable=False, default=dict)
    generated_by = db.Column(db.Integer, db.ForeignKey('church_users.id', ondelete='SET NULL'), nullable=True)
    generated_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    row_count = db.Column(db.Integer, nullable=True)

    report_config = db.relationship('ReportConfig', backref=db.backref('runs', lazy='dynamic'))
