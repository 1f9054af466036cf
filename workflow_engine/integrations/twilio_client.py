"""Twilio messaging client used by SendSms actions."""

from __future__ import annotations

import os
from typing import Optional

from twilio.rest import Client

from ..core.config import settings

# Settings attribute -> older env name still honoured for shared deployments.
_LEGACY_ENV = {
    "twilio_msg_account_sid": "TWILIO_ACCOUNT_SID",
    "twilio_msg_auth_token": "TWILIO_AUTH_TOKEN",
    "twilio_sms_from": "TWILIO_FROM_NUMBER",
}


def _credential(attr: str) -> Optional[str]:
    return getattr(settings, attr, None) or os.getenv(_LEGACY_ENV[attr]) or None


def get_sms_sender() -> Optional[str]:
    return _credential("twilio_sms_from")


def twilio_sms_configured() -> bool:
    return all(_credential(attr) for attr in _LEGACY_ENV)


def get_twilio_messaging_client() -> Client:
    sid = _credential("twilio_msg_account_sid")
    token = _credential("twilio_msg_auth_token")
    if not sid or not token:
        raise RuntimeError("Twilio messaging credentials missing (TWILIO_MSG_ACCOUNT_SID / TWILIO_MSG_AUTH_TOKEN)")
    return Client(sid, token)
