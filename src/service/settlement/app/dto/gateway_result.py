"""
Payment gateway responses parsed at the adapter boundary

The gateway client never hands raw JSON to the application layer.
"""

from typing import Any

import attrs


VERIFICATION_SUCCESS_MESSAGE = 'verification successful'


@attrs.frozen
class VerifyResult:
    status: bool
    message: str
    data: dict[str, Any] = attrs.field(factory=dict)

    @property
    def is_successful(self) -> bool:
        return self.status and self.message.strip().lower() == VERIFICATION_SUCCESS_MESSAGE


@attrs.frozen
class InitiateResult:
    checkout_url: str
    reference: str


@attrs.frozen
class PayoutResult:
    status: bool
    message: str
    reference: str
