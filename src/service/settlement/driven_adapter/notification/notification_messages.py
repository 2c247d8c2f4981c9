"""
Role-specific notification messages built from a committed settlement

Each message is a plain dict so it can sit in the task queue and be posted to
the external mail service unchanged:
    {'template', 'to_email', 'to_name', 'subject', 'context'}
"""

from typing import Any, List

from src.platform.config.core_setting import settings
from src.service.settlement.app.dto.settlement_notice import SettlementNotice
from src.service.settlement.domain.entity.user_entity import User
from src.service.settlement.domain.enum.transaction_type import TransactionType


def _message(*, template: str, user: User, subject: str, **context: Any) -> dict[str, Any]:
    return {
        'template': template,
        'to_email': user.email,
        'to_name': user.name,
        'subject': subject,
        'context': context,
    }


def _category_names(notice: SettlementNotice) -> List[str]:
    return [ticket.category_name or 'Unknown' for ticket in notice.tickets]


def _buyer_ticket_details(notice: SettlementNotice) -> List[dict[str, Any]]:
    qr_by_ticket = {payload.ticket_id: payload for payload in notice.qr_payloads}
    details = []
    for ticket in notice.tickets:
        payload = qr_by_ticket.get(ticket.id)
        details.append(
            {
                'ticket_id': ticket.id,
                'code': ticket.code,
                'category_name': ticket.category_name or 'Unknown',
                'qr_data': payload.to_dict() if payload else None,
                'verification_url': (
                    payload.verification_url(settings.APP_BASE_URL) if payload else None
                ),
            }
        )
    return details


def build_purchase_messages(notice: SettlementNotice) -> List[dict[str, Any]]:
    event_name = notice.event.name if notice.event else 'your event'
    messages = [
        _message(
            template='ticket_purchase_buyer',
            user=notice.buyer,
            subject=f'Your tickets for {event_name}',
            event_name=event_name,
            reference=notice.transaction.reference,
            amount=notice.transaction.amount,
            tickets=_buyer_ticket_details(notice),
        ),
        _message(
            template='ticket_purchase_admin',
            user=notice.admin,
            subject=f'Platform fee received for {event_name}',
            event_name=event_name,
            ticket_count=len(notice.tickets),
            platform_cut=notice.platform_cut,
            buyer_name=notice.buyer.name,
            categories=_category_names(notice),
        ),
    ]
    if notice.organizer is not None:
        messages.append(
            _message(
                template='ticket_purchase_organizer',
                user=notice.organizer,
                subject=f'New ticket sale for {event_name}',
                event_name=event_name,
                ticket_count=len(notice.tickets),
                proceeds=notice.organizer_amount,
                categories=_category_names(notice),
            )
        )
    return messages


def build_resale_messages(notice: SettlementNotice) -> List[dict[str, Any]]:
    event_name = notice.event.name if notice.event else 'your event'
    seller_names = sorted({payout.seller.name for payout in notice.seller_payouts})
    messages = [
        _message(
            template='ticket_resale_buyer',
            user=notice.buyer,
            subject=f'Your resale tickets for {event_name}',
            event_name=event_name,
            reference=notice.transaction.reference,
            amount=notice.transaction.amount,
            tickets=_buyer_ticket_details(notice),
        ),
        _message(
            template='ticket_resale_admin',
            user=notice.admin,
            subject=f'Resale fee received for {event_name}',
            event_name=event_name,
            ticket_count=len(notice.tickets),
            platform_cut=notice.platform_cut,
            buyer_name=notice.buyer.name,
            seller_names=seller_names,
            categories=_category_names(notice),
        ),
    ]
    if notice.organizer is not None:
        messages.append(
            _message(
                template='ticket_resale_organizer',
                user=notice.organizer,
                subject=f'Resale royalty for {event_name}',
                event_name=event_name,
                ticket_count=len(notice.tickets),
                royalty=notice.organizer_amount,
                categories=_category_names(notice),
            )
        )

    # One message per seller, summing their tickets in this transaction
    proceeds_by_seller: dict[int, tuple[User, int, int]] = {}
    for payout in notice.seller_payouts:
        seller, amount, count = proceeds_by_seller.get(payout.seller.id, (payout.seller, 0, 0))
        proceeds_by_seller[payout.seller.id] = (seller, amount + payout.amount, count + 1)
    for seller, amount, count in proceeds_by_seller.values():
        messages.append(
            _message(
                template='ticket_resale_seller',
                user=seller,
                subject=f'Your ticket for {event_name} was resold',
                event_name=event_name,
                ticket_count=count,
                proceeds=amount,
            )
        )
    return messages


def build_fund_messages(notice: SettlementNotice) -> List[dict[str, Any]]:
    return [
        _message(
            template='wallet_funded',
            user=notice.buyer,
            subject='Your wallet has been funded',
            reference=notice.transaction.reference,
            amount=notice.transaction.amount,
        )
    ]


def build_settlement_messages(notice: SettlementNotice) -> List[dict[str, Any]]:
    builders = {
        TransactionType.PURCHASE: build_purchase_messages,
        TransactionType.RESALE: build_resale_messages,
        TransactionType.FUND: build_fund_messages,
    }
    builder = builders.get(notice.transaction.type)
    return builder(notice) if builder else []


def build_withdrawal_message(*, user: User, amount: int, reference: str) -> dict[str, Any]:
    return _message(
        template='wallet_withdrawal',
        user=user,
        subject='Your withdrawal is on its way',
        reference=reference,
        amount=amount,
    )
