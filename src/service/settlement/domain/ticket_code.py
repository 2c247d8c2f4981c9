import hashlib
import hmac
import secrets

from src.platform.config.core_setting import settings


def generate_ticket_code() -> str:
    return f'{settings.TICKET_CODE_PREFIX}-{secrets.token_hex(settings.TICKET_CODE_BYTES).upper()}'


def generate_verification_code(*, code: str, event_id: int, user_id: int, timestamp: int) -> str:
    """Short HMAC over the ticket identity, checked by the gate scanner"""
    key = settings.SECRET_KEY.get_secret_value().encode()
    message = f'{code}-{event_id}-{user_id}-{timestamp}'.encode()
    return hmac.new(key, message, hashlib.sha256).hexdigest()[:12].upper()
