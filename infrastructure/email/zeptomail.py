"""ZeptoMail implementation of EmailProvider.

Renders Jinja2 templates from templates/emails and posts them to the
ZeptoMail HTTP API through the shared async HttpClient.
"""

import os
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import EmailSettings
from infrastructure.http_client import HttpClient
from shared.logging import get_logger

log = get_logger(__name__)

_ZEPTO_API_URL = "https://api.zeptomail.in/v1.1/email"
_DEFAULT_TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "templates",
    "emails",
)


class ZeptoMailProvider:
    def __init__(
        self,
        settings: EmailSettings,
        http_client: HttpClient,
        frontend_url: str = "http://localhost:5173",
        template_dir: str = _DEFAULT_TEMPLATE_DIR,
        registration_otp_minutes: int = 10,
        login_otp_minutes: int = 5,
        reset_link_minutes: int = 10,
    ) -> None:
        self._settings = settings
        self._http = http_client
        self._frontend_url = frontend_url.rstrip("/")
        self._registration_otp_minutes = registration_otp_minutes
        self._login_otp_minutes = login_otp_minutes
        self._reset_link_minutes = reset_link_minutes
        self._jinja = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
        )

    async def _send(
        self,
        to_email: str,
        to_name: Optional[str],
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
    ) -> bool:
        if not self._settings.zepto_api_token:
            log.error("zepto_mail_send_failed", reason="token_not_configured")
            return False

        payload: dict = {
            "from": {
                "address": self._settings.zepto_from_email,
                "name": self._settings.zepto_from_name,
            },
            "to": [
                {
                    "email_address": {
                        "address": to_email,
                        "name": to_name or to_email,
                    }
                }
            ],
            "subject": subject,
            "htmlbody": html_body,
        }
        if text_body:
            payload["textbody"] = text_body

        token = self._settings.zepto_api_token
        if not token.startswith("Zoho-enczapikey "):
            token = f"Zoho-enczapikey {token}"

        headers = {"Authorization": token, "Content-Type": "application/json"}

        try:
            response = await self._http.post(
                _ZEPTO_API_URL, json=payload, headers=headers
            )
            if response.status_code in (200, 201, 202):
                log.info("email_sent_success", to_email=to_email, subject=subject)
                return True
            log.error(
                "email_sent_failed",
                to_email=to_email,
                subject=subject,
                status_code=response.status_code,
                response=response.text[:200],
            )
            return False
        except Exception as e:
            log.error(
                "email_send_error",
                to_email=to_email,
                subject=subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    async def _send_otp(
        self,
        email: str,
        user_name: Optional[str],
        otp_code: str,
        subject: str,
        title: str,
        minutes: int,
    ) -> bool:
        template = self._jinja.get_template("otp.html")
        html_body = template.render(
            title=title, otp_code=otp_code, user_name=user_name, minutes=minutes
        )
        text_body = (
            f"{title}\n\n"
            f"Hello{f' {user_name}' if user_name else ''},\n\n"
            f"Your code is: {otp_code}\n\n"
            f"This code expires in {minutes} minutes.\n"
        )
        return await self._send(email, user_name, subject, html_body, text_body)

    async def send_verification_email(
        self, email: str, user_name: Optional[str], otp_code: str
    ) -> bool:
        return await self._send_otp(
            email,
            user_name,
            otp_code,
            subject="Verify your email",
            title="Verify your email",
            minutes=self._registration_otp_minutes,
        )

    async def send_login_otp_email(
        self, email: str, user_name: Optional[str], otp_code: str
    ) -> bool:
        return await self._send_otp(
            email,
            user_name,
            otp_code,
            subject="Login OTP",
            title="Login Verification",
            minutes=self._login_otp_minutes,
        )

    async def send_welcome_email(self, email: str, user_name: Optional[str]) -> bool:
        subject = f"Welcome to {self._settings.zepto_from_name}!"
        dashboard_url = f"{self._frontend_url}/dashboard"
        template = self._jinja.get_template("verified.html")
        html_body = template.render(user_name=user_name, dashboard_url=dashboard_url)
        text_body = (
            f"Welcome{f', {user_name}' if user_name else ''}!\n\n"
            f"Your email is verified. Get started: {dashboard_url}\n"
        )
        return await self._send(email, user_name, subject, html_body, text_body)

    async def send_password_reset_email(
        self, email: str, user_name: Optional[str], reset_url: str
    ) -> bool:
        subject = "Reset Password"
        template = self._jinja.get_template("reset_password.html")
        html_body = template.render(
            user_name=user_name,
            action_url=reset_url,
            minutes=self._reset_link_minutes,
        )
        text_body = (
            f"Reset Your Password\n\n"
            f"Hello{f' {user_name}' if user_name else ''},\n\n"
            f"Open this link to choose a new password: {reset_url}\n\n"
            f"The link expires in {self._reset_link_minutes} minutes.\n"
        )
        return await self._send(email, user_name, subject, html_body, text_body)
