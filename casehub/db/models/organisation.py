from casehub.db import db
from datetime import datetime, timezone


# one row per direction, rows always come in pairs
organisation_link = db.Table(
    'organisation_link',
    db.Column('from_id', db.Integer, db.ForeignKey('organisation.id'), primary_key=True),
    db.Column('to_id', db.Integer, db.ForeignKey('organisation.id'), primary_key=True),
)


class Organisation(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=False, default='')

    created_by = db.Column(db.String(128), nullable=True)
    updated_by = db.Column(db.String(128), nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    links = db.relationship(
        'Organisation',
        secondary=organisation_link,
        primaryjoin=lambda: Organisation.id == organisation_link.c.from_id,
        secondaryjoin=lambda: Organisation.id == organisation_link.c.to_id,
        order_by=lambda: Organisation.name,
    )

    memberships = db.relationship('Membership', back_populates='organisation', cascade='all, delete-orphan')

    def link_exists(self, other: 'Organisation') -> bool:
        return other in self.links

    def double_link(self, other: 'Organisation') -> None:
        """Link both directions. Linking an already linked pair is a no-op."""
        if other not in self.links:
            self.links.append(other)
        if self not in other.links:
            other.links.append(self)

    def double_unlink(self, other: 'Organisation') -> None:
        if other in self.links:
            self.links.remove(other)
        if self in other.links:
            other.links.remove(self)

    def update_links(self, targets: list['Organisation']) -> tuple[list['Organisation'], list['Organisation']]:
        """
        Make `targets` the exact link set of this organisation.
        Back-links of added and removed organisations follow.
        Returns (added, removed).
        """
        wanted = {org.id: org for org in targets}
        current = {org.id: org for org in self.links}

        removed = [org for org_id, org in current.items() if org_id not in wanted]
        added = [org for org_id, org in wanted.items() if org_id not in current]

        for org in removed:
            self.double_unlink(org)
        for org in added:
            self.double_link(org)

        return added, removed

    def __repr__(self):
        return f'<Organisation {self.name}>'
