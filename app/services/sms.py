# File: app/services/sms.py
"""SMS delivery for one-time passcodes.

The OTP service only talks to an ``SmsSender``; swap the provider by
overriding the ``get_sms_sender`` dependency.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class SmsResult:
    delivered: bool
    provider_id: Optional[str] = None
    error: Optional[str] = None


class SmsSender(Protocol):
    def send(self, phone: str, code: str) -> SmsResult: ...


class LoggingSmsSender:
    """Development sender: writes the code to the log instead of a gateway."""

    def send(self, phone: str, code: str) -> SmsResult:
        if settings.is_production:
            logger.info("OTP issued for phone ending %s", phone[-4:])
        else:
            logger.info("OTP for %s: %s", phone, code)
        return SmsResult(delivered=True, provider_id="log")


_default_sender = LoggingSmsSender()


def get_sms_sender() -> SmsSender:
    return _default_sender
