import logging

from django.contrib.auth import get_user_model

from nepark.exceptions import NotFoundError
from nepark.policy import ADMIN_ROLE, authorize
from notifications.models import Notification

logger = logging.getLogger(__name__)


def create_notification(user, message):
    return Notification.objects.create(user=user, message=message, read=False)


def notify_admins(message):
    admins = get_user_model().objects.filter(role=ADMIN_ROLE)
    notifications = Notification.objects.bulk_create(
        [Notification(user=admin, message=message) for admin in admins]
    )
    logger.info(f"Notified {len(notifications)} admins")
    return notifications


def list_for(user):
    return Notification.objects.filter(user=user).order_by('-created_at', '-id')


def mark_read(notification_id, user):
    notification = Notification.objects.filter(id=notification_id).first()
    if notification is None:
        raise NotFoundError('Notification not found')
    authorize(user, 'notification.mark_read', notification)
    if not notification.read:
        notification.read = True
        notification.save(update_fields=['read'])
    return notification


def mark_all_read(user):
    updated = Notification.objects.filter(user=user, read=False).update(read=True)
    logger.info(f"Marked {updated} notifications as read for user {user.email}")
    return updated
