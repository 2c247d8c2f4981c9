import attrs

from src.platform.exception.exceptions import InvariantViolationError


BPS_DENOMINATOR = 10_000


def _validate_bps(instance: object, attribute: attrs.Attribute, value: int) -> None:
    if not isinstance(value, int) or not 0 <= value <= BPS_DENOMINATOR:
        raise InvariantViolationError(
            f'{attribute.name} must be an integer between 0 and {BPS_DENOMINATOR}'
        )


@attrs.frozen
class FeePolicy:
    """Per-event fee rates in basis points (1/10000 of the transacted amount)"""

    primary_fee_bps: int = attrs.field(validator=_validate_bps)
    resale_fee_bps: int = attrs.field(validator=_validate_bps)
    royalty_fee_bps: int = attrs.field(validator=_validate_bps)

    def __attrs_post_init__(self) -> None:
        if self.resale_fee_bps + self.royalty_fee_bps > BPS_DENOMINATOR:
            raise InvariantViolationError('Resale fee and royalty cannot exceed the resale price')
