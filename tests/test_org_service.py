import pytest
from sqlalchemy import select

from casehub.db import db, transaction
from casehub.db.models import Organisation, Membership, organisation_link
from casehub.exceptions import ConflictError, NotFoundError, ValidationError
from casehub.services.authorization import MembershipPolicy, Permission, Role
from casehub.services.org_service import OrgService
from casehub.services.user_service import UserService

from conftest import get_or_create_org, make_user, make_context


def link_rows():
    return sorted(
        (row.from_id, row.to_id)
        for row in db.session.execute(select(organisation_link)).all()
    )


def test_administration_created_at_startup(app_ctx):
    admin = Organisation.query.filter_by(name='admin').one()
    assert admin.created_by == 'system'

    # calling again reuses it
    assert OrgService.ensure_administration('admin').id == admin.id


def test_find_prefers_id_then_name(app_ctx):
    acme = get_or_create_org('acme')
    numeric = get_or_create_org('12345')

    assert OrgService.find(acme.id).name == 'acme'
    assert OrgService.find(str(acme.id)).name == 'acme'
    assert OrgService.find('acme').id == acme.id
    # no organisation has id 12345, so the name matches
    assert OrgService.find('12345').id == numeric.id
    assert OrgService.find('nowhere') is None

    with pytest.raises(NotFoundError):
        OrgService.get_or_fail('nowhere')


def test_double_link_writes_both_directions(app_ctx):
    acme = get_or_create_org('acme')
    globex = get_or_create_org('globex')

    with transaction():
        acme.double_link(globex)
    assert link_rows() == sorted([(acme.id, globex.id), (globex.id, acme.id)])

    with transaction():
        acme.double_link(globex)
    assert len(link_rows()) == 2

    with transaction():
        globex.double_unlink(acme)
    assert link_rows() == []


def test_update_links_reconciles(app_ctx):
    acme = get_or_create_org('acme')
    globex = get_or_create_org('globex')
    initech = get_or_create_org('initech')

    with transaction():
        added, removed = acme.update_links([globex, initech])
    assert {o.name for o in added} == {'globex', 'initech'}
    assert removed == []

    with transaction():
        added, removed = acme.update_links([initech, initech])
    assert added == []
    assert [o.name for o in removed] == ['globex']
    assert link_rows() == sorted([(acme.id, initech.id), (initech.id, acme.id)])


def test_transaction_rolls_back_on_error(app_ctx):
    with pytest.raises(RuntimeError):
        with transaction():
            db.session.add(Organisation(name='ghost', description=''))
            db.session.flush()
            raise RuntimeError("boom")

    assert Organisation.query.filter_by(name='ghost').first() is None


def test_create_and_conflict(app_ctx):
    ctx = make_context(make_user('admin@test.com', 'admin', 'admin'))

    org = OrgService.create(ctx, 'acme', 'Acme')
    assert org.created_by == 'admin@test.com'

    with pytest.raises(ConflictError):
        OrgService.create(ctx, 'acme', 'Other')

    with pytest.raises(ValidationError):
        OrgService.create(ctx, ' padded ', '')


def test_policy_permissions(app_ctx):
    admin = make_user('admin@test.com', 'admin', 'admin')
    boss = make_user('boss@acme.com', 'acme', 'admin')
    policy = make_context(admin).policy
    acme = Organisation.query.filter_by(name='acme').one()

    assert policy.has_admin_permission(admin, Permission.MANAGE_ORGANISATION)
    assert not policy.has_admin_permission(boss, Permission.MANAGE_ORGANISATION)
    # the role grants it, but only inside acme
    assert policy.has_permission(boss, acme, Permission.MANAGE_ORGANISATION)
    assert not policy.has_permission(boss, acme, 'noSuchPermission')


def test_policy_visibility(app_ctx):
    analyst = make_user('analyst@acme.com', 'acme', 'analyst')
    admin = make_user('admin@test.com', 'admin', 'admin')
    policy = make_context(analyst).policy
    acme = Organisation.query.filter_by(name='acme').one()
    globex = get_or_create_org('globex')

    assert policy.is_visible(analyst, acme)
    assert not policy.is_visible(analyst, globex)
    assert policy.is_visible(admin, globex)

    with transaction():
        acme.double_link(globex)
    assert policy.is_visible(analyst, globex)


def test_list_links_for_member_and_admin(app_ctx):
    analyst_ctx = make_context(make_user('analyst@acme.com', 'acme', 'analyst'))
    admin_ctx = make_context(make_user('admin@test.com', 'admin', 'admin'))
    get_or_create_org('globex')
    get_or_create_org('initech')

    OrgService.link(admin_ctx, 'acme', 'globex')
    OrgService.link(admin_ctx, 'globex', 'initech')

    assert [o.name for o in OrgService.list_links(analyst_ctx, 'acme')] == ['globex']
    assert OrgService.list_links(analyst_ctx, 'globex') == []
    assert [o.name for o in OrgService.list_links(admin_ctx, 'globex')] == ['acme', 'initech']

    OrgService.unlink(admin_ctx, 'acme', 'globex')
    assert OrgService.list_links(analyst_ctx, 'acme') == []
    with pytest.raises(NotFoundError):
        OrgService.unlink(admin_ctx, 'acme', 'globex')


def test_find_numeric_names_outside_id_range(app_ctx):
    huge = get_or_create_org('9' * 30)
    superscript = get_or_create_org('²')

    assert OrgService.find('9' * 30).id == huge.id
    assert OrgService.find(10 ** 30) is None
    assert OrgService.find('²').id == superscript.id
    assert OrgService.find('³') is None


def test_policy_resolves_administration_once(app_ctx):
    admin = make_user('admin@test.com', 'admin', 'admin')
    analyst = make_user('analyst@acme.com', 'acme', 'analyst')
    policy = make_context(admin).policy
    admin_org = Organisation.query.filter_by(name='admin').one()

    assert policy.admin_id == admin_org.id
    assert policy.is_admin_member(admin)
    assert not policy.is_admin_member(analyst)
    assert policy.has_permission(admin, admin_org, Permission.MANAGE_ORGANISATION)

    # the administration membership is remembered for the rest of the request
    with transaction():
        Membership.query.filter_by(user_id=admin.id).delete()
    assert policy.has_admin_permission(admin, Permission.MANAGE_ORGANISATION)
    assert not make_context(admin).policy.has_admin_permission(admin, Permission.MANAGE_ORGANISATION)


def test_policy_without_administration_denies(app_ctx):
    admin = make_user('admin@test.com', 'admin', 'admin')
    policy = MembershipPolicy('no-such-organisation')

    assert policy.admin_id is None
    assert not policy.is_admin_member(admin)
    assert not policy.has_admin_permission(admin, Permission.MANAGE_ORGANISATION)


def test_add_membership_adds_and_changes_role(app_ctx):
    user = make_user('analyst@acme.com', 'acme', 'analyst')
    globex = get_or_create_org('globex')

    UserService.add_membership(user, globex, Role.READ_ONLY)
    roles = {m.organisation.name: m.role for m in Membership.query.filter_by(user_id=user.id)}
    assert roles == {'acme': Role.ANALYST, 'globex': Role.READ_ONLY}

    UserService.add_membership(user, globex, Role.ORG_ADMIN)
    assert Membership.query.filter_by(user_id=user.id, organisation_id=globex.id).one().role == Role.ORG_ADMIN
    assert Membership.query.filter_by(user_id=user.id).count() == 2

    with pytest.raises(ValidationError):
        UserService.add_membership(user, globex, 'superuser')
