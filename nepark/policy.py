"""Capability checks for users acting on parking records.

Every ownership/role decision goes through ``can``. Actions are looked up in
``RULES``; the owner of a resource is resolved by ``owner_id_of``.
"""

from nepark.exceptions import ForbiddenError

ADMIN_ROLE = 'ADMIN'

OWNER = 'owner'
ADMIN = 'admin'
OWNER_OR_ADMIN = 'owner_or_admin'

RULES = {
    'vehicle.view': OWNER_OR_ADMIN,
    'vehicle.change': OWNER_OR_ADMIN,
    'vehicle.delete': OWNER_OR_ADMIN,
    'slot.manage': ADMIN,
    'slot_request.create': OWNER,
    'slot_request.view': OWNER_OR_ADMIN,
    'slot_request.update': OWNER,
    'slot_request.delete': OWNER_OR_ADMIN,
    'slot_request.decide': ADMIN,
    'session.view': OWNER_OR_ADMIN,
    'session.check_in': OWNER_OR_ADMIN,
    'session.request_checkout': OWNER_OR_ADMIN,
    'session.check_out': ADMIN,
    'notification.mark_read': OWNER,
}


def is_admin(user):
    return getattr(user, 'role', None) == ADMIN_ROLE


def owner_id_of(resource):
    # Imported here to keep the policy importable before the app registry is ready
    from notifications.models import Notification
    from parking_sessions.models import ParkingSession
    from slot_requests.models import SlotRequest
    from users.models import User
    from vehicles.models import Vehicle

    if isinstance(resource, User):
        return resource.pk
    if isinstance(resource, Vehicle):
        return resource.owner_id
    if isinstance(resource, SlotRequest):
        return resource.user_id
    if isinstance(resource, ParkingSession):
        return resource.vehicle.owner_id
    if isinstance(resource, Notification):
        return resource.user_id
    raise TypeError(f"No owner rule for {type(resource).__name__}")


def can(actor, action, resource=None):
    rule = RULES[action]
    if actor is None:
        return False
    if rule == ADMIN:
        return is_admin(actor)

    is_owner = resource is not None and owner_id_of(resource) == actor.pk
    if rule == OWNER:
        return is_owner
    return is_owner or is_admin(actor)


def authorize(actor, action, resource=None, message=None):
    if not can(actor, action, resource):
        raise ForbiddenError(message)
