from casehub.db.models.organisation import Organisation, organisation_link
from casehub.db.models.user import User
from casehub.db.models.membership import Membership

__all__ = ['Organisation', 'organisation_link', 'User', 'Membership']
