from casehub.db import db
from datetime import datetime, timezone


class Membership(db.Model):
    __table_args__ = (
        db.UniqueConstraint('user_id', 'organisation_id', name='uq_membership_user_organisation'),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    organisation_id = db.Column(db.Integer, db.ForeignKey('organisation.id'), nullable=False)
    role = db.Column(db.String(32), nullable=False) # admin, org-admin, analyst, read-only
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    user = db.relationship('User', back_populates='memberships')
    organisation = db.relationship('Organisation', back_populates='memberships')

    def __repr__(self):
        return f'<Membership {self.user_id}@{self.organisation_id} {self.role}>'
