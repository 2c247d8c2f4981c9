import pytest

from src.platform.exception.exceptions import InvariantViolationError
from src.service.settlement.domain.fee_calculator import (
    compute_cut,
    split_primary,
    split_resale,
)


pytestmark = pytest.mark.unit


class TestComputeCut:
    def test_floors_fractional_minor_units(self):
        # 333 * 150 / 10000 = 4.995
        assert compute_cut(333, 150) == 4

    def test_zero_rate_takes_nothing(self):
        assert compute_cut(5000, 0) == 0

    def test_full_rate_takes_everything(self):
        assert compute_cut(5000, 10_000) == 5000

    @pytest.mark.parametrize('rate_bps', [-1, 10_001, 2.5, True])
    def test_rejects_invalid_rates(self, rate_bps):
        with pytest.raises(InvariantViolationError):
            compute_cut(1000, rate_bps)

    @pytest.mark.parametrize('amount', [-1, 10.5])
    def test_rejects_invalid_amounts(self, amount):
        with pytest.raises(InvariantViolationError):
            compute_cut(amount, 100)


class TestSplitPrimary:
    def test_ten_percent_primary_fee(self):
        split = split_primary(5000, 1000)

        assert split.platform_cut == 500
        assert split.organizer_proceeds == 4500

    def test_remainder_goes_to_organizer(self):
        split = split_primary(999, 1000)

        assert split.platform_cut == 99
        assert split.organizer_proceeds == 900
        assert split.platform_cut + split.organizer_proceeds == 999


class TestSplitResale:
    def test_fee_and_royalty_split(self):
        split = split_resale(2000, 500, 200)

        assert split.platform_cut == 100
        assert split.organizer_royalty == 40
        assert split.seller_proceeds == 1860

    def test_parts_always_sum_to_price(self):
        for price in (1, 7, 333, 1999, 123_457):
            split = split_resale(price, 725, 133)
            assert split.platform_cut + split.organizer_royalty + split.seller_proceeds == price

    def test_combined_rates_cannot_exceed_price(self):
        with pytest.raises(InvariantViolationError):
            split_resale(2000, 6000, 5000)

    def test_zero_seller_share_when_rates_take_all(self):
        split = split_resale(2000, 9000, 1000)

        assert split.seller_proceeds == 0
