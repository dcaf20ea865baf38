"""Test doubles for outbound email."""

from nepark.exceptions import EmailDeliveryError


class RecordingEmailSender:
    """Keeps every message in a class-level outbox instead of calling Brevo."""

    outbox = []
    fail = False

    def send(self, to, subject, html, name=None):
        self._record({'to': to, 'subject': subject, 'html': html})

    def send_template(self, to, template, context, name=None):
        self._record({'to': to, 'template': template, 'context': dict(context)})

    def _record(self, message):
        if type(self).fail:
            raise EmailDeliveryError()
        type(self).outbox.append(message)

    @classmethod
    def reset(cls):
        cls.outbox = []
        cls.fail = False

    @classmethod
    def last_code(cls, to):
        for message in reversed(cls.outbox):
            if message['to'] == to and 'code' in message.get('context', {}):
                return message['context']['code']
        return None
