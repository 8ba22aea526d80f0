import logging
from dataclasses import asdict
from typing import Dict, Any

import requests

from core.services.payment_provider import PaymentProvider, PaymentRequest, PaymentReceipt

logger = logging.getLogger(__name__)


class WebhookPaymentProvider(PaymentProvider):
    """Forwards payment requests to the automation webhook that talks to the gateway."""

    def __init__(self, url: str, timeout: float = 15.0, session: requests.Session = None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    @staticmethod
    def _payload(request: PaymentRequest) -> Dict[str, Any]:
        customer = asdict(request.customer)
        customer["cpf"] = customer.pop("document")
        return {
            "amount": float(request.amount),
            "customer": customer,
            "items": [
                {"description": i.description, "amount": float(i.amount), "quantity": i.quantity}
                for i in request.items
            ],
            "type": request.type,
            "externalReference": request.external_reference,
        }

    def create_payment(self, request: PaymentRequest) -> PaymentReceipt:
        if not self.url:
            return PaymentReceipt(success=False, message="Payment webhook URL is not configured")
        try:
            response = self.session.post(self.url, json=self._payload(request), timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            logger.error("Payment webhook request failed: %s", e)
            return PaymentReceipt(success=False, message="Erro ao conectar com o serviço de pagamentos")
        except ValueError:
            logger.error("Payment webhook returned a non-JSON body")
            return PaymentReceipt(success=False, message="Resposta inválida do serviço de pagamentos")

        return PaymentReceipt(
            success=bool(data.get("success")),
            payment_id=data.get("paymentId"),
            qr_code=data.get("qrCode"),
            copy_paste_code=data.get("copyPasteCode"),
            payment_link=data.get("paymentLink"),
            message=data.get("message"),
        )
