import attrs

from src.platform.exception.exceptions import DomainError


def _validate_digits(instance: object, attribute: attrs.Attribute, value: str) -> None:
    if not value or not value.strip().isdigit():
        raise DomainError(f'{attribute.name} must contain digits only')


@attrs.frozen
class PayoutDestination:
    account_number: str = attrs.field(validator=_validate_digits, repr=False)
    bank_code: str = attrs.field(validator=_validate_digits)

    def to_gateway_payload(self) -> dict[str, str]:
        return {'account_number': self.account_number, 'bank_code': self.bank_code}


@attrs.frozen
class Customer:
    email: str
    name: str

    def to_gateway_payload(self) -> dict[str, str]:
        return {'email': self.email, 'name': self.name}
