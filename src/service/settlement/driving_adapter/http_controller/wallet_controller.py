from typing import List

from fastapi import APIRouter, Depends, status

from src.platform.logging.loguru_io import Logger
from src.service.settlement.app.command.initiate_wallet_funding_use_case import (
    InitiateWalletFundingUseCase,
)
from src.service.settlement.app.command.set_wallet_pin_use_case import SetWalletPinUseCase
from src.service.settlement.app.command.withdraw_from_wallet_use_case import (
    WithdrawFromWalletUseCase,
)
from src.service.settlement.app.query.get_wallet_use_case import GetWalletUseCase
from src.service.settlement.app.query.list_wallet_transactions_use_case import (
    ListWalletTransactionsUseCase,
)
from src.service.settlement.domain.entity.user_entity import User
from src.service.settlement.driving_adapter.http_controller.auth.role_auth import (
    get_current_user,
    require_organizer,
    require_withdrawal_role,
)
from src.service.settlement.driving_adapter.http_controller.schema.payment_schema import (
    CheckoutResponse,
)
from src.service.settlement.driving_adapter.http_controller.schema.wallet_schema import (
    FundWalletRequest,
    MessageResponse,
    SetWalletPinRequest,
    WalletBalanceResponse,
    WalletPinStatusResponse,
    WalletTransactionResponse,
    WithdrawRequest,
    WithdrawResponse,
)


router = APIRouter()


@router.get('/balance', response_model=WalletBalanceResponse)
@Logger.io
async def get_balance(
    current_user: User = Depends(get_current_user),
    use_case: GetWalletUseCase = Depends(GetWalletUseCase.depends),
) -> WalletBalanceResponse:
    return WalletBalanceResponse(balance=await use_case.get_balance(user_id=current_user.id))


@router.post('/fund', status_code=status.HTTP_201_CREATED)
@Logger.io
async def fund_wallet(
    request: FundWalletRequest,
    current_user: User = Depends(get_current_user),
    use_case: InitiateWalletFundingUseCase = Depends(InitiateWalletFundingUseCase.depends),
) -> CheckoutResponse:
    result = await use_case.initiate_wallet_funding(user_id=current_user.id, amount=request.amount)
    return CheckoutResponse(**result)


@router.post('/withdraw', response_model=WithdrawResponse)
@Logger.io
async def withdraw(
    request: WithdrawRequest,
    current_user: User = Depends(require_withdrawal_role),
    use_case: WithdrawFromWalletUseCase = Depends(WithdrawFromWalletUseCase.depends),
) -> WithdrawResponse:
    result = await use_case.withdraw(
        user_id=current_user.id,
        amount=request.amount,
        pin=request.pin,
        account_number=request.account_number,
        bank_code=request.bank_code,
        narration=request.narration,
    )
    return WithdrawResponse(**result)


@router.post('/pin', response_model=MessageResponse)
@Logger.io
async def set_wallet_pin(
    request: SetWalletPinRequest,
    current_user: User = Depends(get_current_user),
    use_case: SetWalletPinUseCase = Depends(SetWalletPinUseCase.depends),
) -> MessageResponse:
    result = await use_case.set_wallet_pin(
        user_id=current_user.id, new_pin=request.new_pin, old_pin=request.old_pin
    )
    return MessageResponse(**result)


@router.get('/pin', response_model=WalletPinStatusResponse)
@Logger.io
async def get_wallet_pin_status(
    current_user: User = Depends(get_current_user),
    use_case: GetWalletUseCase = Depends(GetWalletUseCase.depends),
) -> WalletPinStatusResponse:
    return WalletPinStatusResponse(has_pin=await use_case.has_pin(user_id=current_user.id))


@router.get('/transactions', response_model=List[WalletTransactionResponse])
@Logger.io
async def list_wallet_transactions(
    current_user: User = Depends(require_organizer),
    use_case: ListWalletTransactionsUseCase = Depends(ListWalletTransactionsUseCase.depends),
) -> List[WalletTransactionResponse]:
    views = await use_case.list_organizer_transactions(user_id=current_user.id)
    return [WalletTransactionResponse.from_view(view) for view in views]
