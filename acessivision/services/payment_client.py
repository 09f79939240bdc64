import os
import hmac
import hashlib
import logging
from typing import Optional, Dict, Any
import httpx
from ..models.billing import PixCharge
from .errors import PaymentError

logger = logging.getLogger(__name__)


def parse_signature_header(header: str) -> Dict[str, str]:
    """x-signature: ts=...,v1=..."""
    parts = {}
    for item in (header or "").split(","):
        key, _, value = item.strip().partition("=")
        if key and value:
            parts[key] = value
    return parts


def verify_signature(secret: str, signature_header: str, request_id: str, data_id: str) -> bool:
    """Valida a assinatura HMAC-SHA256 das notificações do Mercado Pago"""
    parts = parse_signature_header(signature_header)
    ts = parts.get("ts")
    received = parts.get("v1")
    if not ts or not received:
        return False

    data_id = str(data_id or "")
    if data_id.isalnum():
        data_id = data_id.lower()

    manifest = f"id:{data_id};request-id:{request_id or ''};ts:{ts};"
    expected = hmac.new(secret.encode(), manifest.encode(), hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, received)


class PaymentClient:
    """Cliente da API de pagamentos do Mercado Pago (PIX)"""

    def __init__(self, access_token=None, base_url=None, transport=None):
        self.access_token = access_token or os.getenv("MERCADOPAGO_ACCESS_TOKEN")
        self.base_url = (base_url or os.getenv("MERCADOPAGO_API_URL", "https://api.mercadopago.com")).rstrip("/")

        self.client = httpx.AsyncClient(
            headers={
                "Content-Type": "application/json",
                "User-Agent": "AcessiVision/1.0"
            },
            timeout=30.0,
            transport=transport
        )

    def _auth_headers(self) -> Dict[str, str]:
        if not self.access_token:
            raise PaymentError("MERCADOPAGO_ACCESS_TOKEN não está definida")
        return {"Authorization": f"Bearer {self.access_token}"}

    def _handle_error(self, e: Exception, context: str) -> PaymentError:
        """Loga e formata erro HTTP do Mercado Pago"""
        response = getattr(e, "response", None)
        status_code = response.status_code if response is not None else None
        error_text = response.text if response is not None else str(e)

        logger.error(f"[Mercado Pago] Erro em {context} | Status: {status_code or 'desconhecido'} | Detalhes: {error_text}")
        return PaymentError(f"Erro Mercado Pago em {context}: Status={status_code or 'desconhecido'}", status_code)

    @staticmethod
    def _parse_charge(result: Dict[str, Any]) -> PixCharge:
        transaction_data = (result.get("point_of_interaction") or {}).get("transaction_data") or {}
        return PixCharge(
            payment_id=str(result.get("id")),
            status=result.get("status", "unknown"),
            qr_code=transaction_data.get("qr_code"),
            qr_code_base64=transaction_data.get("qr_code_base64"),
            ticket_url=transaction_data.get("ticket_url"),
            external_reference=result.get("external_reference")
        )

    async def create_pix_charge(
            self,
            amount: float,
            description: str,
            payer_email: str,
            external_reference: str,
            notification_url: Optional[str] = None
    ) -> PixCharge:
        """Abre uma cobrança PIX"""

        headers = self._auth_headers()
        # Reenvios com a mesma referência não geram cobranças duplicadas
        headers["X-Idempotency-Key"] = external_reference

        body: Dict[str, Any] = {
            "transaction_amount": amount,
            "description": description,
            "payment_method_id": "pix",
            "payer": {"email": payer_email},
            "external_reference": external_reference
        }
        if notification_url:
            body["notification_url"] = notification_url

        logger.info(f"Criando cobrança PIX. Referência: {external_reference}, Valor: {amount}")

        try:
            response = await self.client.post(f"{self.base_url}/v1/payments", json=body, headers=headers)
            response.raise_for_status()
            result = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise self._handle_error(e, "create_pix_charge") from e

        if not result.get("id"):
            raise PaymentError("Mercado Pago não retornou o ID do pagamento")
        return self._parse_charge(result)

    async def get_payment(self, payment_id: str) -> PixCharge:
        """Consulta status de um pagamento"""
        url = f"{self.base_url}/v1/payments/{payment_id}"

        try:
            response = await self.client.get(url, headers=self._auth_headers())
            response.raise_for_status()
            return self._parse_charge(response.json())
        except (httpx.HTTPError, ValueError) as e:
            raise self._handle_error(e, f"get_payment({payment_id})") from e

    async def close(self):
        """Fecha o cliente HTTP"""
        await self.client.aclose()
