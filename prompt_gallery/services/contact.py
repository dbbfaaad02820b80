import html
import logging
from dataclasses import dataclass

import requests

from prompt_gallery.config import Settings

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"


class ContactError(Exception):
    """Ошибка отправки формы. Текст уже можно показывать пользователю."""


@dataclass(frozen=True)
class ContactForm:
    full_name: str
    reason: str
    email: str
    message: str

    def validate(self):
        if not all(value and value.strip() for value in (self.full_name, self.reason, self.email, self.message)):
            raise ContactError("Please fill in all required fields.")


def render_html(form: ContactForm) -> str:
    message = html.escape(form.message).replace("\n", "<br>")
    return (
        "<h2>New Contact Form Submission</h2>"
        f"<p><strong>Full Name:</strong> {html.escape(form.full_name)}</p>"
        f"<p><strong>Reason for Contact:</strong> {html.escape(form.reason)}</p>"
        f"<p><strong>Contact Email:</strong> {html.escape(form.email)}</p>"
        "<p><strong>Message:</strong></p>"
        f'<div style="background-color: #f5f5f5; padding: 15px; border-radius: 5px; margin: 10px 0;">{message}</div>'
        "<hr><p><small>Sent from Community Artist contact form</small></p>"
    )


def send_contact_email(form: ContactForm, settings: Settings, http=requests) -> str:
    """Отправляет письмо через Resend и возвращает id письма."""
    form.validate()

    if not settings.email_api_key:
        logger.error("❌ [Contact] EMAIL_SERVICE_API_KEY not set")
        raise ContactError("Email service is not configured. Please contact support.")
    if not settings.contact_recipient:
        logger.error("❌ [Contact] CONTACT_RECIPIENT not set")
        raise ContactError("Email service is not configured. Please contact support.")

    payload = {
        "from": settings.sender_email,
        "to": [settings.contact_recipient],
        "subject": f"New Contact Form Submission: {form.reason}",
        "html": render_html(form),
    }
    headers = {
        "Authorization": f"Bearer {settings.email_api_key}",
        "Content-Type": "application/json",
    }

    logger.info(f"📧 [Contact] Sending email. Reason: '{form.reason[:50]}'")
    try:
        resp = http.post(RESEND_URL, json=payload, headers=headers, timeout=30)
    except requests.RequestException as e:
        logger.error(f"❌ [Contact] Network error: {e}")
        raise ContactError("Failed to send email. Please try again later.")

    if not 200 <= resp.status_code < 300:
        logger.error(f"❌ [Contact] Email service error {resp.status_code}: {resp.text}")
        raise ContactError("Failed to send email. Please try again later.")

    try:
        body = resp.json()
    except ValueError:
        logger.error(f"❌ [Contact] Email service returned non-JSON body: {resp.text[:200]}")
        raise ContactError("Failed to send email. Please try again later.")
    if not isinstance(body, dict):
        logger.error(f"❌ [Contact] Unexpected email service response: {body!r}")
        raise ContactError("Failed to send email. Please try again later.")

    email_id = body.get("id")
    logger.info(f"✅ [Contact] Email sent. Id: {email_id}")
    return email_id
