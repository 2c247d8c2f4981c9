from abc import ABC, abstractmethod

from pydantic import SecretStr


class IPinHasher(ABC):
    @abstractmethod
    def hash_pin(self, *, pin: SecretStr) -> str:
        pass

    @abstractmethod
    def verify_pin(self, *, pin: SecretStr, pin_hash: str) -> bool:
        pass
