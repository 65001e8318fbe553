"""이메일 발송 유틸리티 — SMTP (aiosmtplib).

SMTP 설정은 config.py의 SMTP_* 환경 변수로 관리.
SMTP_HOST가 비어 있으면 메일을 보내지 않고 로그만 남깁니다.
"""

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

import aiosmtplib

from tourbook.config import settings

logger = logging.getLogger(__name__)

_EMAIL_HTML = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{{SUBJECT}}</title></head>
<body style="font-family:system-ui,sans-serif;color:#333">
<p>Hi {{FIRST_NAME}},</p>
{{BODY}}
<p>{{FROM_NAME}} team</p>
</body>
</html>"""


async def send_email(
    to: str,
    subject: str,
    html: str,
    text: str | None = None,
) -> None:
    """이메일 발송.

    Args:
        to: 수신자 이메일 주소
        subject: 제목
        html: HTML 본문
        text: 플레인텍스트 본문 (없으면 생략)
    """
    if not settings.SMTP_HOST:
        logger.info("SMTP not configured, skipping email %r to %s", subject, to)
        return

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
    msg["To"] = to

    if text:
        msg.attach(MIMEText(text, "plain", "utf-8"))
    msg.attach(MIMEText(html, "html", "utf-8"))

    await aiosmtplib.send(
        msg,
        hostname=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USER or None,
        password=settings.SMTP_PASSWORD or None,
        start_tls=True,
    )
    logger.info("Sent email %r to %s", subject, to)


class Email:
    """사용자 대상 트랜잭션 메일.

    Transactional emails for one recipient.

    Usage:
        await Email(user.name, user.email, url).send_welcome()
    """

    def __init__(self, user_name: str, user_email: str, url: str) -> None:
        self.to: str = user_email
        self.first_name: str = user_name.split(" ")[0]
        self.url: str = url

    def _render(self, subject: str, body: str) -> str:
        return (
            _EMAIL_HTML.replace("{{SUBJECT}}", escape(subject))
            .replace("{{FIRST_NAME}}", escape(self.first_name))
            .replace("{{FROM_NAME}}", escape(settings.SMTP_FROM_NAME))
            .replace("{{BODY}}", body)
        )

    async def send(self, subject: str, body: str, text: str) -> None:
        await send_email(self.to, subject, self._render(subject, body), text)

    async def send_welcome(self) -> None:
        url = escape(self.url)
        await self.send(
            f"Welcome to the {settings.SMTP_FROM_NAME} family!",
            f'<p>Welcome! Upload a profile photo on <a href="{url}">your account page</a>.</p>',
            f"Welcome! Upload a profile photo on your account page: {self.url}",
        )

    async def send_password_reset(self) -> None:
        url = escape(self.url)
        await self.send(
            "Your password reset token (valid for only 10 minutes)",
            "<p>Forgot your password? Submit a PATCH request with your new password "
            f'and password_confirm to: <a href="{url}">{url}</a>.</p>'
            "<p>If you didn't forget your password, please ignore this email.</p>",
            f"Forgot your password? Submit a PATCH request with your new password and "
            f"password_confirm to: {self.url}\nIf you didn't forget your password, please ignore this email.",
        )
