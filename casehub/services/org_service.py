from datetime import datetime, timezone
from typing import Optional, Union
import logging

from sqlalchemy.exc import IntegrityError

from casehub.db import db, transaction
from casehub.db.models import Organisation, Membership, User
from casehub.exceptions import ValidationError, NotFoundError, ConflictError
from casehub.utils.validators import validate_organisation_name

logger = logging.getLogger(__name__)

IdOrName = Union[int, str]

UPDATABLE_FIELDS = ('name', 'description')

# largest value an integer primary key can hold
MAX_ID = 2 ** 63 - 1


class OrgService:

    @staticmethod
    def ensure_administration(name: str) -> Organisation:
        """Create the administration organisation if it is missing"""
        org = Organisation.query.filter_by(name=name).first()
        if org:
            return org

        with transaction():
            org = Organisation(
                name=name,
                description='Organisation of platform administrators',
                created_by='system',
                created_at=datetime.now(timezone.utc),
                updated_at=datetime.now(timezone.utc)
            )
            db.session.add(org)
        logger.info("Created administration organisation %s", name)
        return org

    @staticmethod
    def find(id_or_name: IdOrName) -> Optional[Organisation]:
        """
        Resolve an id or a name. A value of ASCII digits that fits an id is
        tried as an id first; anything else is only matched as a name.
        """
        value = str(id_or_name)
        if value.isascii() and value.isdigit() and int(value) <= MAX_ID:
            org = db.session.get(Organisation, int(value))
            if org:
                return org
        return Organisation.query.filter_by(name=value).first()

    @staticmethod
    def get_or_fail(id_or_name: IdOrName) -> Organisation:
        org = OrgService.find(id_or_name)
        if not org:
            raise NotFoundError(f"Organisation {id_or_name} not found", "ORG_NOT_FOUND")
        return org

    @staticmethod
    def create(ctx, name: str, description: str) -> Organisation:
        """
        Create a new organisation.
        Permission is checked by the route (manageOrganisation in the
        administration organisation), the name must be free.
        """
        if not validate_organisation_name(name):
            raise ValidationError("Invalid organisation name", "INVALID_NAME")
        if not isinstance(description, str):
            raise ValidationError("Description must be a string", "INVALID_DESCRIPTION")

        try:
            with transaction():
                if Organisation.query.filter_by(name=name).first():
                    raise ConflictError(f"Organisation {name} already exists", "ORG_EXISTS")

                org = Organisation(
                    name=name,
                    description=description,
                    created_by=ctx.email,
                    created_at=datetime.now(timezone.utc),
                    updated_at=datetime.now(timezone.utc)
                )
                db.session.add(org)
        except IntegrityError as e:
            raise ConflictError(f"Organisation {name} already exists", "ORG_EXISTS") from e

        logger.info("%s created organisation %s", ctx.email, name)
        return org

    @staticmethod
    def get(ctx, id_or_name: IdOrName) -> Organisation:
        with transaction():
            org = OrgService.find(id_or_name)
            if not org or not ctx.policy.is_visible(ctx.user, org):
                raise NotFoundError(f"Organisation {id_or_name} not found", "ORG_NOT_FOUND")
        return org

    @staticmethod
    def list_organisations(ctx, page: Optional[tuple[int, int]] = None) -> list[Organisation]:
        """List visible organisations by name, optionally sliced to [from, to)"""
        with transaction():
            query = ctx.policy.visible_query(ctx.user).order_by(Organisation.name)
            if page:
                start, end = page
                query = query.offset(start).limit(end - start)
            organisations = query.all()
        return organisations

    @staticmethod
    def update(ctx, id_or_name: IdOrName, fields: dict) -> Organisation:
        if not fields:
            raise ValidationError("Nothing to update", "EMPTY_UPDATE")

        unknown = sorted(set(fields) - set(UPDATABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(unknown)}", "UNKNOWN_FIELD")

        try:
            with transaction():
                org = OrgService.get_or_fail(id_or_name)

                if 'name' in fields and fields['name'] != org.name:
                    new_name = fields['name']
                    if org.name == ctx.policy.admin_organisation:
                        raise ValidationError("The administration organisation cannot be renamed", "ADMIN_RENAME")
                    if not validate_organisation_name(new_name):
                        raise ValidationError("Invalid organisation name", "INVALID_NAME")
                    if Organisation.query.filter_by(name=new_name).first():
                        raise ConflictError(f"Organisation {new_name} already exists", "ORG_EXISTS")
                    org.name = new_name

                if 'description' in fields:
                    if not isinstance(fields['description'], str):
                        raise ValidationError("Description must be a string", "INVALID_DESCRIPTION")
                    org.description = fields['description']

                org.updated_by = ctx.email
                org.updated_at = datetime.now(timezone.utc)
        except IntegrityError as e:
            raise ConflictError(f"Organisation {fields.get('name')} already exists", "ORG_EXISTS") from e

        logger.info("%s updated organisation %s (%s)", ctx.email, id_or_name, ', '.join(sorted(fields)))
        return org

    @staticmethod
    def link(ctx, from_id: IdOrName, to_id: IdOrName) -> None:
        with transaction():
            from_org = OrgService.get_or_fail(from_id)
            to_org = OrgService.get_or_fail(to_id)
            if from_org.id == to_org.id:
                raise ValidationError("An organisation cannot be linked to itself", "SELF_LINK")
            from_org.double_link(to_org)

        logger.info("%s linked %s and %s", ctx.email, from_org.name, to_org.name)

    @staticmethod
    def bulk_link(ctx, from_id: IdOrName, targets: list) -> None:
        """Replace the whole link set of an organisation with `targets`"""
        with transaction():
            from_org = OrgService.get_or_fail(from_id)
            to_orgs = [OrgService.get_or_fail(target) for target in targets]
            if any(org.id == from_org.id for org in to_orgs):
                raise ValidationError("An organisation cannot be linked to itself", "SELF_LINK")
            added, removed = from_org.update_links(to_orgs)

        logger.info(
            "%s set links of %s: added [%s], removed [%s]",
            ctx.email,
            from_org.name,
            ', '.join(org.name for org in added),
            ', '.join(org.name for org in removed)
        )

    @staticmethod
    def unlink(ctx, from_id: IdOrName, to_id: IdOrName) -> None:
        with transaction():
            from_org = OrgService.get_or_fail(from_id)
            to_org = OrgService.get_or_fail(to_id)
            if not from_org.link_exists(to_org):
                raise NotFoundError(
                    f"Organisation {from_id} is not linked to {to_id}",
                    "LINK_NOT_FOUND"
                )
            from_org.double_unlink(to_org)

        logger.info("%s unlinked %s and %s", ctx.email, from_org.name, to_org.name)

    @staticmethod
    def list_links(ctx, id_or_name: IdOrName) -> list[Organisation]:
        """
        Organisations linked to `id_or_name`.
        Administration members can ask about any organisation, other users only
        about their own; anything else yields an empty list.
        """
        with transaction():
            org = OrgService.find(id_or_name)
            if org and not ctx.policy.is_admin_member(ctx.user) and not ctx.policy.is_member(ctx.user, org):
                org = None
            links = list(org.links) if org else []
        return links

    @staticmethod
    def list_users(ctx, id_or_name: IdOrName) -> list[Membership]:
        org = OrgService.get(ctx, id_or_name)
        with transaction():
            memberships = Membership.query.join(User).filter(
                Membership.organisation_id == org.id
            ).order_by(User.email).all()
        return memberships
