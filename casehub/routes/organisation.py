from flask import Blueprint, request, jsonify
from casehub.services.org_service import OrgService
from casehub.services.authorization import Permission
from casehub.middleware.auth import requires_auth, requires_permission
from casehub.exceptions import ValidationError
from casehub.utils.validators import parse_range

org_bp = Blueprint('organisation', __name__)


def organisation_to_json(org, rich=False) -> dict:
    data = {
        'id': org.id,
        'name': org.name,
        'description': org.description,
        'created_by': org.created_by,
        'created_at': org.created_at.isoformat() if org.created_at else None,
        'updated_by': org.updated_by,
        'updated_at': org.updated_at.isoformat() if org.updated_at else None
    }
    if rich:
        data['links'] = [linked.name for linked in org.links]
    return data


def get_json_object() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object", "INVALID_BODY")
    return data


@org_bp.route('', methods=['POST'])
@requires_auth
@requires_permission(Permission.MANAGE_ORGANISATION)
def create_org():
    """Create a new organisation"""
    data = get_json_object()
    name = data.get('name')
    description = data.get('description')

    if name is None or description is None:
        raise ValidationError("Missing required fields", "MISSING_REQUIRED_FIELDS")

    org = OrgService.create(request.auth_context, name, description)
    return jsonify(organisation_to_json(org)), 201


@org_bp.route('/<string:organisation_id>', methods=['GET'])
@requires_auth
def get_org(organisation_id):
    """Get a visible organisation with its links"""
    org = OrgService.get(request.auth_context, organisation_id)
    return jsonify(organisation_to_json(org, rich=True)), 200


@org_bp.route('', methods=['GET'])
@requires_auth
def list_orgs():
    """List all organisations visible to the caller"""
    try:
        page = parse_range(request.args.get('range'))
    except ValueError as e:
        raise ValidationError(str(e), "INVALID_RANGE")

    organisations = OrgService.list_organisations(request.auth_context, page)
    return jsonify([organisation_to_json(org, rich=True) for org in organisations]), 200


@org_bp.route('/<string:organisation_id>', methods=['PATCH'])
@requires_auth
@requires_permission(Permission.MANAGE_ORGANISATION)
def update_org(organisation_id):
    OrgService.update(request.auth_context, organisation_id, get_json_object())
    return '', 204


@org_bp.route('/<string:from_id>/links/<string:to_id>', methods=['POST'])
@requires_auth
@requires_permission(Permission.MANAGE_ORGANISATION)
def link_orgs(from_id, to_id):
    OrgService.link(request.auth_context, from_id, to_id)
    return '', 201


@org_bp.route('/<string:from_id>/links', methods=['POST'])
@requires_auth
@requires_permission(Permission.MANAGE_ORGANISATION)
def bulk_link_orgs(from_id):
    """Replace the link set of an organisation"""
    organisations = get_json_object().get('organisations')

    if not isinstance(organisations, list) or not all(isinstance(o, (str, int)) for o in organisations):
        raise ValidationError("organisations must be a list of ids or names", "INVALID_ORGANISATIONS")

    OrgService.bulk_link(request.auth_context, from_id, organisations)
    return '', 201


@org_bp.route('/<string:from_id>/links/<string:to_id>', methods=['DELETE'])
@requires_auth
@requires_permission(Permission.MANAGE_ORGANISATION)
def unlink_orgs(from_id, to_id):
    OrgService.unlink(request.auth_context, from_id, to_id)
    return '', 204


@org_bp.route('/<string:organisation_id>/links', methods=['GET'])
@requires_auth
def list_org_links(organisation_id):
    links = OrgService.list_links(request.auth_context, organisation_id)
    return jsonify([organisation_to_json(org) for org in links]), 200


@org_bp.route('/<string:organisation_id>/users', methods=['GET'])
@requires_auth
def list_org_users(organisation_id):
    memberships = OrgService.list_users(request.auth_context, organisation_id)
    return jsonify([{
        'id': m.user.id,
        'email': m.user.email,
        'role': m.role
    } for m in memberships]), 200
