"""
Fee splitting for primary sales and resales

All amounts are integer minor units and rates are basis points (1 bps = 0.01%).
Every cut is floored, and the remainder goes to the organizer on primary sales
or to the seller on resales, so each split sums exactly to its input.
"""

import attrs

from src.platform.exception.exceptions import InvariantViolationError
from src.service.settlement.domain.value_object.fee_policy import BPS_DENOMINATOR


@attrs.frozen
class PrimarySplit:
    platform_cut: int
    organizer_proceeds: int


@attrs.frozen
class ResaleSplit:
    platform_cut: int
    organizer_royalty: int
    seller_proceeds: int


def _validate_rate(rate_bps: int) -> None:
    if not isinstance(rate_bps, int) or isinstance(rate_bps, bool):
        raise InvariantViolationError('Fee rate must be an integer number of basis points')
    if not 0 <= rate_bps <= BPS_DENOMINATOR:
        raise InvariantViolationError(f'Fee rate must be between 0 and {BPS_DENOMINATOR} bps')


def _validate_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise InvariantViolationError('Amount must be an integer in minor units')
    if amount < 0:
        raise InvariantViolationError('Amount cannot be negative')


def compute_cut(amount: int, rate_bps: int) -> int:
    _validate_amount(amount)
    _validate_rate(rate_bps)
    return amount * rate_bps // BPS_DENOMINATOR


def split_primary(amount: int, primary_fee_bps: int) -> PrimarySplit:
    platform_cut = compute_cut(amount, primary_fee_bps)
    return PrimarySplit(platform_cut=platform_cut, organizer_proceeds=amount - platform_cut)


def split_resale(price: int, resale_fee_bps: int, royalty_fee_bps: int) -> ResaleSplit:
    _validate_rate(resale_fee_bps)
    _validate_rate(royalty_fee_bps)
    if resale_fee_bps + royalty_fee_bps > BPS_DENOMINATOR:
        raise InvariantViolationError('Combined resale fee and royalty exceed the resale price')

    platform_cut = compute_cut(price, resale_fee_bps)
    organizer_royalty = compute_cut(price, royalty_fee_bps)
    return ResaleSplit(
        platform_cut=platform_cut,
        organizer_royalty=organizer_royalty,
        seller_proceeds=price - platform_cut - organizer_royalty,
    )
