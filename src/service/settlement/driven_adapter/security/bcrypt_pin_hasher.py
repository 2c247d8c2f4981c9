import bcrypt
from pydantic import SecretStr

from src.platform.logging.loguru_io import Logger
from src.service.settlement.app.interface.i_pin_hasher import IPinHasher


class BcryptPinHasher(IPinHasher):
    """Concrete bcrypt implementation of IPinHasher"""

    @Logger.io
    def hash_pin(self, *, pin: SecretStr) -> str:
        pin_bytes = pin.get_secret_value().encode('utf-8')
        return bcrypt.hashpw(pin_bytes, bcrypt.gensalt(rounds=10)).decode('utf-8')

    @Logger.io
    def verify_pin(self, *, pin: SecretStr, pin_hash: str) -> bool:
        pin_bytes = pin.get_secret_value().encode('utf-8')
        try:
            return bcrypt.checkpw(pin_bytes, pin_hash.encode('utf-8'))
        except ValueError:
            # Stored value is not a bcrypt hash
            return False
