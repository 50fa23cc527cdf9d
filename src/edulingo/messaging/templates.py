"""
Email templates for EduLingo.

All templates use inline CSS for maximum email client compatibility.

Each template function returns (subject, html_body, text_body).
"""

from __future__ import annotations

from html import escape

# Color constants
BG_PAGE = "#F4F4F4"
BG_CARD = "#FFFFFF"
BLUE = "#2563EB"
TEXT_PRIMARY = "#333333"
TEXT_SECONDARY = "#666666"

FOOTER_TEXT = (
    "This is an automated notification from EduLingo Platform.\n"
    "Please do not reply to this email directly. Use the platform to respond."
)
FOOTER_HTML = FOOTER_TEXT.replace("\n", "<br>")


def _base_layout(content: str, title: str) -> str:
    """Wrap content in the base email layout."""
    return f"""\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
</head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: {TEXT_PRIMARY}; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="background-color: {BG_PAGE}; padding: 20px; border-radius: 5px;">
        {content}
        <p style="color: {TEXT_SECONDARY}; font-size: 14px; margin-top: 30px;">
            {FOOTER_HTML}
        </p>
    </div>
</body>
</html>"""


def _button(url: str, label: str) -> str:
    """Render a blue CTA button."""
    return f"""\
<div style="text-align: center; margin: 30px 0;">
    <a href="{url}" style="background-color: {BLUE}; color: white; padding: 12px 24px; text-decoration: none; border-radius: 5px; display: inline-block;">
        {label}
    </a>
</div>"""


def _panel(inner: str) -> str:
    return f'<div style="background-color: {BG_CARD}; padding: 20px; border-radius: 5px; margin: 20px 0;">{inner}</div>'


def message_email(
    recipient_name: str | None,
    sender_name: str,
    subject: str | None,
    content: str,
    platform_url: str | None = None,
) -> tuple[str, str, str]:
    """
    Notification that a platform message (or reminder) was sent to the recipient.

    Returns:
        (subject, html_body, text_body)
    """
    name = recipient_name or "there"
    email_subject = subject or f"New message from {sender_name}"
    messages_url = f"{platform_url.rstrip('/')}/dashboard/messages" if platform_url else None

    subject_html = _panel("<strong>Subject:</strong> " + escape(subject)) if subject else ""
    content_html = _panel('<p style="white-space: pre-wrap; margin: 0;">' + escape(content) + "</p>")
    button_html = _button(messages_url, "View Message in Platform") if messages_url else ""

    html_content = f"""\
<h2 style="color: {BLUE}; margin-top: 0;">New Message from EduLingo</h2>
<p>Hello {escape(name)},</p>
<p>You have received a new message from <strong>{escape(sender_name)}</strong>.</p>
{subject_html}
{content_html}
{button_html}"""
    html_body = _base_layout(html_content, f"New Message from {escape(sender_name)}")

    text_body = f"New Message from EduLingo\n\nHello {name},\n\nYou have received a new message from {sender_name}.\n\n"
    if subject:
        text_body += f"Subject: {subject}\n\n"
    text_body += f"{content}\n"
    if messages_url:
        text_body += f"\nView the message in the platform: {messages_url}\n"
    text_body += f"\n---\n{FOOTER_TEXT}"

    return email_subject, html_body, text_body
