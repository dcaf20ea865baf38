import logging

import sib_api_v3_sdk
from sib_api_v3_sdk.rest import ApiException
from django.conf import settings
from django.template.loader import render_to_string
from django.utils.module_loading import import_string

from nepark.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)

# Template name -> subject line. Bodies live in templates/emails/<name>.html
EMAIL_SUBJECTS = {
    'verification': 'Verify your NePark account',
    'welcome': 'Welcome to NePark!',
    'password_reset': 'Reset your NePark password',
    'password_changed': 'Your NePark password has been changed',
    'slot_approved': 'NePark: Your Parking Slot Request Has Been Approved',
    'slot_rejected': 'NePark: Your Parking Slot Request Has Been Rejected',
}


class BrevoEmailSender:
    """Transactional email sender backed by the Brevo API.

    A template is sent through its Brevo template id when one is configured in
    ``BREVO_TEMPLATE_IDS``; otherwise the local Django template is rendered and
    sent as HTML content.
    """

    def __init__(self, api_instance=None, sender=None, template_ids=None):
        if api_instance is None:
            configuration = sib_api_v3_sdk.Configuration()
            configuration.api_key['api-key'] = settings.BREVO_API_KEY
            api_instance = sib_api_v3_sdk.TransactionalEmailsApi(sib_api_v3_sdk.ApiClient(configuration))
        self.api_instance = api_instance
        self.sender = sender or {"email": settings.BREVO_SENDER_EMAIL, "name": settings.BREVO_SENDER_NAME}
        self.template_ids = template_ids if template_ids is not None else settings.BREVO_TEMPLATE_IDS

    def send(self, to, subject, html, name=None):
        recipient = {"email": to, "name": name} if name else {"email": to}
        self._deliver(sib_api_v3_sdk.SendSmtpEmail(
            to=[recipient],
            sender=self.sender,
            subject=subject,
            html_content=html,
        ), to)

    def send_template(self, to, template, context, name=None):
        template_id = self.template_ids.get(template)
        if template_id is None:
            html = render_to_string(f'emails/{template}.html', context)
            self.send(to, EMAIL_SUBJECTS[template], html, name=name)
            return

        recipient = {"email": to, "name": name} if name else {"email": to}
        self._deliver(sib_api_v3_sdk.SendSmtpEmail(
            to=[recipient],
            sender=self.sender,
            template_id=int(template_id),
            params={key.upper(): value for key, value in context.items()},
        ), to)

    def _deliver(self, message, to):
        try:
            self.api_instance.send_transac_email(message)
            logger.info(f"Email sent to {to}")
        except ApiException as e:
            logger.error(f"Error sending email to {to}: {str(e)}, Status: {e.status}, Body: {e.body}")
            raise EmailDeliveryError() from e


def get_email_sender():
    """Build the sender configured by ``EMAIL_SENDER_CLASS``."""
    return import_string(settings.EMAIL_SENDER_CLASS)()
