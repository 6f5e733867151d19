"""
Defaulter email dispatch.

Sends one alert per defaulter, to the student with the parent on cc, one
after the other. A failed send is recorded in that defaulter's result and
the loop moves on to the next one.
"""

import logging
import smtplib
import time
from dataclasses import dataclass, field
from email.utils import make_msgid
from typing import List

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.core.mail.utils import DNS_NAME

from .messages import EmailTemplates

logger = logging.getLogger(__name__)


@dataclass
class Defaulter:
    roll_number: str = ''
    name: str = ''
    gender: str = ''
    attendance_percentage: float = 0.0
    student_email: str = ''
    parent_email: str = ''
    class_name: str = ''


@dataclass
class DispatchReport:
    sent: int = 0
    total: int = 0
    results: List[dict] = field(default_factory=list)
    simulated: bool = False

    @property
    def message(self):
        if self.simulated:
            return ("Email simulation completed. Set EMAIL_USER and EMAIL_PASS "
                    "(Gmail app password) in the environment to send real emails.")
        return "Emails processed (some may have failed). See results for details."

    def as_dict(self):
        return {
            "success": True,
            "simulated": self.simulated,
            "sent": self.sent,
            "total": self.total,
            "results": self.results,
            "message": self.message,
        }


def _decode(value):
    if isinstance(value, bytes):
        return value.decode('utf-8', errors='replace')
    return value


def describe_error(exc):
    """message/code/response of a failed send, as reported to the dashboard."""
    code = getattr(exc, 'smtp_code', None) or getattr(exc, 'errno', None)
    response = _decode(getattr(exc, 'smtp_error', None))
    recipients = getattr(exc, 'recipients', None)
    if response is None and recipients:
        response = {addr: [c, _decode(msg)] for addr, (c, msg) in recipients.items()}
    return {
        "message": str(exc) or exc.__class__.__name__,
        "code": code,
        "response": response,
    }


class DefaulterNotifier:
    def __init__(self, pool, from_email=None, threshold=None):
        self.pool = pool
        self.from_email = from_email or settings.DEFAULT_FROM_EMAIL
        self.threshold = threshold

    def send(self, defaulters):
        defaulters = list(defaulters)
        connection = self.pool.acquire()
        if connection is None:
            return self._simulate(defaulters)

        report = DispatchReport(total=len(defaulters))
        for defaulter in defaulters:
            result = self._send_one(connection, defaulter)
            if result["success"]:
                report.sent += 1
            report.results.append(result)
        return report

    def _simulate(self, defaulters):
        logger.warning("Mail transport not available: running in simulation mode for defaulter emails")
        results = [
            {"success": True, "email": d.student_email, "message": f"Email simulated for {d.name}"}
            for d in defaulters
        ]
        logger.debug(f"Simulated results sample: {results[:3]}")
        return DispatchReport(sent=len(results), total=len(defaulters), results=results, simulated=True)

    def build_message(self, connection, defaulter):
        subject, text_body, html_body = EmailTemplates.low_attendance(defaulter, self.threshold)
        message_id = make_msgid(domain=str(DNS_NAME))
        msg = EmailMultiAlternatives(
            subject=subject,
            body=text_body,
            from_email=self.from_email,
            to=[defaulter.student_email] if defaulter.student_email else [],
            cc=[defaulter.parent_email] if defaulter.parent_email else [],
            connection=connection,
            headers={"Message-ID": message_id},
        )
        msg.attach_alternative(html_body, "text/html")
        return msg, message_id

    def _send_one(self, connection, defaulter):
        email = defaulter.student_email
        if not defaulter.student_email and not defaulter.parent_email:
            return {"success": False, "email": email, "error": describe_error(ValueError("No recipient address"))}

        logger.debug(f"Preparing to send email to: {email} cc: {defaulter.parent_email} name: {defaulter.name}")
        try:
            msg, message_id = self.build_message(connection, defaulter)
            start = time.monotonic()
            accepted = msg.send(fail_silently=False)
            duration = int((time.monotonic() - start) * 1000)
        except (smtplib.SMTPException, OSError, ValueError) as e:
            logger.error(f"Failed to send email to {email} error: {e}")
            return {"success": False, "email": email, "error": describe_error(e)}

        if not accepted:
            logger.error(f"Email to {email} was not accepted by the mail backend")
            return {"success": False, "email": email, "error": describe_error(smtplib.SMTPException("Message not accepted"))}

        logger.info(f"Email sent to {email} messageId={message_id} duration={duration}ms")
        return {"success": True, "email": email, "message": f"Sent: {message_id}"}
