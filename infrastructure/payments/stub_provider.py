import logging
from uuid import uuid4

from core.services.payment_provider import PaymentProvider, PaymentRequest, PaymentReceipt

logger = logging.getLogger(__name__)


class StubPaymentProvider(PaymentProvider):
    """Always succeeds: a fake PIX code or payment link for the requested amount."""

    def create_payment(self, request: PaymentRequest) -> PaymentReceipt:
        payment_id = f"stub-{uuid4()}"
        logger.info("Stub payment %s created for %s (%s)", payment_id, request.amount, request.type)
        if request.type == "LINK":
            return PaymentReceipt(
                success=True,
                payment_id=payment_id,
                payment_link=f"https://pay.example.invalid/{payment_id}",
                message="Stub payment link created",
            )
        return PaymentReceipt(
            success=True,
            payment_id=payment_id,
            qr_code=f"stub-qr:{payment_id}",
            copy_paste_code=f"00020126STUB{payment_id}5204000053039865404{request.amount}",
            message="Stub PIX created",
        )
