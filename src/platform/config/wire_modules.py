"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.settlement.app.command import (
    initiate_resale_purchase_use_case,
    initiate_ticket_purchase_use_case,
    initiate_wallet_funding_use_case,
    set_wallet_pin_use_case,
    verify_and_settle_use_case,
    withdraw_from_wallet_use_case,
)
from src.service.settlement.app.query import (
    list_tickets_use_case,
    list_wallet_transactions_use_case,
)
from src.service.settlement.driving_adapter.http_controller.auth import role_auth


WIRE_MODULES: list[ModuleType] = [
    verify_and_settle_use_case,
    initiate_ticket_purchase_use_case,
    initiate_resale_purchase_use_case,
    initiate_wallet_funding_use_case,
    withdraw_from_wallet_use_case,
    set_wallet_pin_use_case,
    list_tickets_use_case,
    list_wallet_transactions_use_case,
    role_auth,
]
