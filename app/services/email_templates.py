"""Named HTML email templates with ``{{variable}}`` placeholders."""

import logging
import re
from dataclasses import dataclass
from html import escape

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


@dataclass(frozen=True)
class EmailTemplate:
    subject: str
    body: str


_LAYOUT = """<!DOCTYPE html>
<html>
  <head><meta charset="UTF-8"></head>
  <body style="font-family: Arial, sans-serif; background: #f5f5f5; padding: 20px;">
    <div style="max-width: 600px; margin: 0 auto; background: #fff; padding: 30px; border-radius: 8px;">
      {content}
      <hr>
      <p style="color: #777; font-size: 12px;">{{{{companyName}}}} · {{{{companyPhone}}}} · {{{{companyAddress}}}}</p>
    </div>
  </body>
</html>
"""

TEMPLATES: dict[str, EmailTemplate] = {
    "welcome": EmailTemplate(
        subject="Welcome to {{companyName}}!",
        body=_LAYOUT.format(content="""
      <h1>Welcome, {{userName}}!</h1>
      <p>Your account for <strong>{{companyName}}</strong> is ready.</p>
      <p><a href="{{loginUrl}}">Sign in</a> to set up your services and team.</p>"""),
    ),
    "password-reset": EmailTemplate(
        subject="Reset your password - {{companyName}}",
        body=_LAYOUT.format(content="""
      <h1>Hello, {{userName}}</h1>
      <p>We received a request to reset your password.</p>
      <p><a href="{{resetUrl}}">Choose a new password</a>. The link expires in {{ttlMinutes}} minutes.</p>
      <p>If you did not ask for this, you can ignore this email.</p>"""),
    ),
    "appointment-confirmation": EmailTemplate(
        subject="Appointment confirmed - {{companyName}}",
        body=_LAYOUT.format(content="""
      <h1>See you soon, {{clientName}}!</h1>
      <p>Your appointment is confirmed:</p>
      <ul>
        <li>Date: {{appointmentDate}}</li>
        <li>Time: {{appointmentTime}}</li>
        <li>Service: {{serviceName}}</li>
        <li>With: {{employeeName}}</li>
      </ul>"""),
    ),
    "appointment-reminder": EmailTemplate(
        subject="Reminder: your appointment tomorrow - {{companyName}}",
        body=_LAYOUT.format(content="""
      <h1>Hi {{clientName}},</h1>
      <p>This is a reminder of your appointment tomorrow, {{appointmentDate}} at {{appointmentTime}}
         ({{serviceName}} with {{employeeName}}).</p>
      <p><a href="{{confirmUrl}}">Confirm</a> · <a href="{{rescheduleUrl}}">Reschedule</a></p>"""),
    ),
    "appointment-starting-soon": EmailTemplate(
        subject="Your appointment starts soon - {{companyName}}",
        body=_LAYOUT.format(content="""
      <h1>Hi {{clientName}},</h1>
      <p>Your appointment for {{serviceName}} starts today at {{appointmentTime}}.</p>"""),
    ),
}

_FALLBACK = EmailTemplate(
    subject="{{companyName}}",
    body=_LAYOUT.format(content="<p>Hello {{userName}}{{clientName}}!</p>"),
)


def substitute(text: str, variables: dict[str, str], *, html: bool) -> str:
    """Replace ``{{name}}`` tokens; unknown names render as empty strings."""

    def _replace(match: re.Match) -> str:
        value = variables.get(match.group(1)) or ""
        return escape(value) if html else value

    return _PLACEHOLDER.sub(_replace, text)


def render_template(name: str, variables: dict[str, str]) -> tuple[str, str]:
    """Return ``(subject, html)`` for a named template."""
    template = TEMPLATES.get(name)
    if template is None:
        logger.error("Unknown email template %r, using fallback", name)
        template = _FALLBACK
    return (
        substitute(template.subject, variables, html=False),
        substitute(template.body, variables, html=True),
    )