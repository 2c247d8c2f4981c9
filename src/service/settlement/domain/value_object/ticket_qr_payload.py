from urllib.parse import quote

import attrs
import orjson


@attrs.frozen
class TicketQrPayload:
    """Data encoded into a ticket's QR code and checked at the venue gate"""

    ticket_id: int
    event_id: int
    user_id: int
    code: str
    verification_code: str
    timestamp: int  # epoch milliseconds

    def to_dict(self) -> dict:
        return {
            'ticketId': self.ticket_id,
            'eventId': self.event_id,
            'userId': self.user_id,
            'code': self.code,
            'verificationCode': self.verification_code,
            'timestamp': self.timestamp,
        }

    def verification_url(self, base_url: str) -> str:
        data = quote(orjson.dumps(self.to_dict()).decode())
        return f'{base_url.rstrip("/")}/verify-ticket?data={data}'
