"""Verification emails sent directly through Flask-Mail."""

from __future__ import annotations

import logging

from flask import current_app
from flask_mail import Message as MailMessage

from planmarket.backends.base import EmailDispatcher, Result
from planmarket.extensions import mail

logger = logging.getLogger(__name__)


class MailEmailDispatcher(EmailDispatcher):
    subject = 'Verify your email address'

    def send_verification(self, email, code, redirect_url):
        site_name = current_app.config.get('SITE_NAME', 'PlanMarket')
        msg = MailMessage(subject=self.subject, recipients=[email])
        msg.body = (
            f"Welcome to {site_name}!\n\n"
            f"Your verification code is: {code}\n\n"
            "Enter this 6-digit code on the sign-up page to activate your account."
        )
        if redirect_url:
            msg.body += f"\n\nContinue here: {redirect_url}"
        msg.body += "\n\nIf you did not create an account, you can ignore this email."
        try:
            mail.send(msg)
        except Exception as exc:
            logger.error('Failed to send verification email: %s', exc)
            return Result.failure(exc)
        return Result(data={'email': email})
