"""
Action executors that perform the real side effects of matched rules.

Each action type maps to one executor. Executors for channels without
configuration fall back to log-only executors so a missing SMTP host or
Twilio account never breaks dispatch.
"""

from __future__ import annotations

import logging
import os
import re
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Any, Optional

import requests

from ..core.config import settings
from ..integrations.twilio_client import get_sms_sender, get_twilio_messaging_client, twilio_sms_configured
from ..schemas.enums import ActionType
from .actions import PlannedAction
from .payload import resolve_path

_logger = logging.getLogger("workflow_executors")

_PLACEHOLDER = re.compile(r"\{\{\s*([\w.]+)\s*\}\}")


def render_parameters(value: Any, payload: Any) -> Any:
    """Replace ``{{Field.Path}}`` placeholders with values from the trigger payload."""
    if isinstance(value, str):
        return _PLACEHOLDER.sub(lambda m: resolve_path(payload, m.group(1)).as_text() or "", value)
    if isinstance(value, dict):
        return {key: render_parameters(item, payload) for key, item in value.items()}
    if isinstance(value, list):
        return [render_parameters(item, payload) for item in value]
    return value


def _recipients(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = str(value).replace(";", ",").split(",")
    return [str(item).strip() for item in items if str(item).strip()]


def _require(params: dict, key: str, action_type: str) -> Any:
    value = params.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"{action_type} requires parameter '{key}'")
    return value


class ActionExecutor:
    def execute(self, params: dict, action: PlannedAction) -> Optional[str]:
        raise NotImplementedError


class LogActionExecutor(ActionExecutor):
    """Records the action in the log instead of calling an external system."""

    def execute(self, params: dict, action: PlannedAction) -> Optional[str]:
        _logger.info(
            "Workflow action %s rule=%s order=%s params=%s",
            action.action_type,
            action.rule_id,
            action.order,
            params,
        )
        return f"{action.action_type} logged"


class EmailLogExecutor(ActionExecutor):
    def execute(self, params: dict, action: PlannedAction) -> Optional[str]:
        to = _recipients(_require(params, "to", action.action_type))
        _logger.info("SMTP not configured; email to=%s subject=%s", to, params.get("subject"))
        return f"Email logged for {', '.join(to)}"


class EmailSMTPExecutor(ActionExecutor):
    """
    SMTP email executor.

    For MailHog:
        SMTP_HOST=127.0.0.1
        SMTP_PORT=1025
        SMTP_STARTTLS=false
    """

    def __init__(self) -> None:
        self.host = os.getenv("SMTP_HOST") or settings.smtp_host
        self.port = int(os.getenv("SMTP_PORT") or settings.smtp_port or 587)
        self.user = os.getenv("SMTP_USER") or settings.smtp_user
        self.password = os.getenv("SMTP_PASSWORD") or settings.smtp_password
        self.sender = os.getenv("SMTP_FROM") or settings.smtp_from or self.user or "workflow@localhost"

        raw_tls = os.getenv("SMTP_USE_TLS", os.getenv("SMTP_STARTTLS", "")).lower().strip()
        if raw_tls in {"0", "false", "no"}:
            self.starttls = False
        elif raw_tls in {"1", "true", "yes"}:
            self.starttls = True
        else:
            self.starttls = False if self.port == 1025 else True

    def execute(self, params: dict, action: PlannedAction) -> Optional[str]:
        if not self.host:
            raise RuntimeError("SMTP_HOST is not configured")
        to = _recipients(_require(params, "to", action.action_type))
        subject = str(params.get("subject") or f"Workflow notification: {action.rule_name}")
        body = params.get("body")
        if not body:
            template = params.get("template")
            body = f"Workflow '{action.rule_name}' notification" + (f" ({template})" if template else "")
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = ", ".join(to)
        cc = _recipients(params.get("cc"))
        if cc:
            msg["Cc"] = ", ".join(cc)
        msg.set_content(str(body))
        if "<" in str(body) and ">" in str(body):
            msg.add_alternative(str(body), subtype="html")
        bcc = _recipients(params.get("bcc"))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=8) as server:
                server.ehlo()
                if self.starttls:
                    server.starttls()
                    server.ehlo()
                if self.user and self.password:
                    server.login(self.user, self.password)
                server.send_message(msg, to_addrs=to + cc + bcc)
        except Exception as exc:
            raise RuntimeError(f"SMTP send failed: {exc}") from exc
        return f"Email sent to {', '.join(to)}"


class SmsLogExecutor(ActionExecutor):
    def execute(self, params: dict, action: PlannedAction) -> Optional[str]:
        to = _require(params, "phoneNumber", action.action_type)
        _logger.info("Twilio not configured; sms to=%s message=%s", to, params.get("message"))
        return f"SMS logged for {to}"


class TwilioSmsExecutor(ActionExecutor):
    def __init__(self) -> None:
        self.sender = get_sms_sender()
        self.client = get_twilio_messaging_client()

    def execute(self, params: dict, action: PlannedAction) -> Optional[str]:
        to = str(_require(params, "phoneNumber", action.action_type))
        body = str(params.get("message") or params.get("template") or f"Workflow '{action.rule_name}' notification")
        message = self.client.messages.create(to=to, from_=self.sender, body=body)
        return f"SMS sent sid={getattr(message, 'sid', None)}"


class WebhookExecutor(ActionExecutor):
    def __init__(self, default_timeout: Optional[int] = None) -> None:
        self.default_timeout = default_timeout or settings.webhook_timeout_sec

    def execute(self, params: dict, action: PlannedAction) -> Optional[str]:
        url = str(_require(params, "url", action.action_type))
        method = str(params.get("method") or "POST").upper()
        headers = params.get("headers") or {}
        if not isinstance(headers, dict):
            raise ValueError("CallWebhook 'headers' must be an object")
        try:
            timeout = float(params.get("timeout") or self.default_timeout)
        except (TypeError, ValueError):
            timeout = float(self.default_timeout)
        body = params.get("body")
        kwargs: dict[str, Any] = {"headers": {str(k): str(v) for k, v in headers.items()}, "timeout": (5, timeout)}
        if body is not None and method != "GET":
            if isinstance(body, (dict, list)):
                kwargs["json"] = body
            else:
                kwargs["data"] = str(body)
        try:
            response = requests.request(method, url, **kwargs)
        except requests.RequestException as exc:
            raise RuntimeError(f"Webhook request failed: {exc}") from exc
        if response.status_code >= 400:
            raise RuntimeError(f"Webhook returned HTTP {response.status_code}")
        return f"Webhook {method} {url} returned HTTP {response.status_code}"


@dataclass
class ExecutorSet:
    executors: dict[str, ActionExecutor] = field(default_factory=dict)

    def execute(self, action: PlannedAction, payload: Any) -> Optional[str]:
        executor = self.executors.get(action.action_type)
        if executor is None:
            raise RuntimeError(f"Unsupported action type: {action.action_type}")
        params = render_parameters(action.parameters or {}, payload)
        return executor.execute(params, action)


def build_executors() -> ExecutorSet:
    log_executor = LogActionExecutor()
    email: ActionExecutor
    if os.getenv("SMTP_HOST") or settings.smtp_host:
        email = EmailSMTPExecutor()
    else:
        email = EmailLogExecutor()
    sms: ActionExecutor = SmsLogExecutor()
    if twilio_sms_configured():
        try:
            sms = TwilioSmsExecutor()
        except Exception as exc:
            _logger.error("Twilio SMS executor unavailable; falling back to log: %s", exc)
    return ExecutorSet(
        executors={
            ActionType.SEND_EMAIL.value: email,
            ActionType.SEND_SMS.value: sms,
            ActionType.SEND_NOTIFICATION.value: log_executor,
            ActionType.CREATE_TASK.value: log_executor,
            ActionType.UPDATE_STATUS.value: log_executor,
            ActionType.GENERATE_REPORT.value: log_executor,
            ActionType.CALL_WEBHOOK.value: WebhookExecutor(),
        }
    )
