from typing import Protocol, Optional

from sqlalchemy import select, or_

from casehub.db.models import Organisation, User, Membership, organisation_link


class Permission:
    MANAGE_ORGANISATION = 'manageOrganisation'
    MANAGE_USER = 'manageUser'
    MANAGE_CASE = 'manageCase'
    MANAGE_ALERT = 'manageAlert'


class Role:
    ADMIN = 'admin'
    ORG_ADMIN = 'org-admin'
    ANALYST = 'analyst'
    READ_ONLY = 'read-only'


ROLE_PERMISSIONS = {
    Role.ADMIN: frozenset({
        Permission.MANAGE_ORGANISATION,
        Permission.MANAGE_USER,
        Permission.MANAGE_CASE,
        Permission.MANAGE_ALERT,
    }),
    Role.ORG_ADMIN: frozenset({
        Permission.MANAGE_USER,
        Permission.MANAGE_CASE,
        Permission.MANAGE_ALERT,
    }),
    Role.ANALYST: frozenset({
        Permission.MANAGE_CASE,
        Permission.MANAGE_ALERT,
    }),
    Role.READ_ONLY: frozenset(),
}


class AuthorizationPolicy(Protocol):
    admin_organisation: str

    def has_permission(self, user: User, organisation: Organisation, permission: str) -> bool:
        ...

    def is_visible(self, user: User, organisation: Organisation) -> bool:
        ...

    def is_member(self, user: User, organisation: Organisation) -> bool:
        ...

    def is_admin_member(self, user: User) -> bool:
        ...

    def has_admin_permission(self, user: User, permission: str) -> bool:
        ...

    def visible_query(self, user: User):
        ...


class MembershipPolicy:
    """
    Authorization driven by organisation membership.

    A user holds a permission inside an organisation when their membership role
    grants it. Members of the administration organisation see every
    organisation; everyone else sees their own organisations and the ones
    linked to them.

    One instance serves one request: the administration organisation and each
    user's administration membership are looked up once.
    """

    def __init__(self, admin_organisation: str):
        self.admin_organisation = admin_organisation
        self._admin_id = None
        self._admin_roles = {}

    @property
    def admin_id(self) -> Optional[int]:
        if self._admin_id is None:
            self._admin_id = Organisation.query.with_entities(Organisation.id).filter_by(
                name=self.admin_organisation
            ).scalar()
        return self._admin_id

    def _membership(self, user: User, organisation_id: int) -> Optional[Membership]:
        return Membership.query.filter_by(
            user_id=user.id,
            organisation_id=organisation_id
        ).first()

    def _admin_role(self, user: User) -> Optional[str]:
        if user.id not in self._admin_roles:
            membership = self._membership(user, self.admin_id) if self.admin_id else None
            self._admin_roles[user.id] = membership.role if membership else None
        return self._admin_roles[user.id]

    @staticmethod
    def _grants(role: Optional[str], permission: str) -> bool:
        if role is None:
            return False
        return permission in ROLE_PERMISSIONS.get(role, frozenset())

    def is_member(self, user: User, organisation: Organisation) -> bool:
        return organisation is not None and self._membership(user, organisation.id) is not None

    def has_permission(self, user: User, organisation: Organisation, permission: str) -> bool:
        if organisation is None:
            return False
        if organisation.id == self.admin_id:
            return self._grants(self._admin_role(user), permission)
        membership = self._membership(user, organisation.id)
        return self._grants(membership.role if membership else None, permission)

    def is_admin_member(self, user: User) -> bool:
        return self._admin_role(user) is not None

    def has_admin_permission(self, user: User, permission: str) -> bool:
        """Check a permission held inside the administration organisation"""
        return self._grants(self._admin_role(user), permission)

    def visible_query(self, user: User):
        """Organisation query restricted to what `user` may read"""
        if self.is_admin_member(user):
            return Organisation.query

        own_ids = select(Membership.organisation_id).where(Membership.user_id == user.id)
        linked_ids = select(organisation_link.c.to_id).where(organisation_link.c.from_id.in_(own_ids))

        return Organisation.query.filter(
            or_(Organisation.id.in_(own_ids), Organisation.id.in_(linked_ids))
        )

    def is_visible(self, user: User, organisation: Organisation) -> bool:
        if organisation is None:
            return False
        return self.visible_query(user).filter(Organisation.id == organisation.id).first() is not None
