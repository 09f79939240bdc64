from fastapi import APIRouter, Request, HTTPException, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
import logging
import json
import os
from ...database.connection import get_db
from ...database.models import Billing
from ...models.billing import BillingStatus, PixCharge
from ...services.errors import PaymentError
from ...services.payment_client import verify_signature
from ...services.plans import activate_premium
from ...utils.helpers import utcnow

router = APIRouter()
logger = logging.getLogger(__name__)

FAILED_PAYMENT_STATUSES = {"cancelled", "rejected", "refunded", "charged_back"}


async def _read_payload(request: Request) -> dict:
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return payload if isinstance(payload, dict) else {}


def _find_billing(db: Session, charge: PixCharge):
    billing = db.query(Billing).filter(Billing.payment_id == charge.payment_id).first()
    if not billing and charge.external_reference:
        billing = db.get(Billing, charge.external_reference)
    return billing


@router.post("/payment")
async def payment_webhook(
        request: Request,
        db: Session = Depends(get_db)
):
    """Recebe notificações de pagamento do Mercado Pago"""

    # Prazo do plano conta a partir da chegada do evento
    arrived_at = utcnow()

    payload = await _read_payload(request)
    event_type = payload.get("type") or request.query_params.get("type") or request.query_params.get("topic")
    data_id = (payload.get("data") or {}).get("id") or request.query_params.get("data.id")

    logger.info(f"[{data_id}] Webhook de pagamento recebido: {event_type}")
    logger.debug(f"[{data_id}] Payload completo: {payload}")

    secret = os.getenv("MERCADOPAGO_WEBHOOK_SECRET")
    if secret and not verify_signature(
            secret,
            request.headers.get("x-signature", ""),
            request.headers.get("x-request-id", ""),
            request.query_params.get("data.id") or data_id
    ):
        logger.warning(f"[{data_id}] Assinatura do webhook inválida")
        raise HTTPException(status_code=401, detail="Assinatura inválida")

    if event_type != "payment" or not data_id:
        return JSONResponse(status_code=200, content={"message": "Evento ignorado"})

    try:
        charge = await request.app.state.payment_client.get_payment(str(data_id))
    except PaymentError as e:
        logger.error(f"[{data_id}] Erro ao consultar pagamento: {e}")
        raise HTTPException(status_code=502, detail="Erro ao consultar pagamento")

    billing = _find_billing(db, charge)
    if not billing:
        logger.error(f"[{data_id}] Cobrança não encontrada no banco de dados")
        raise HTTPException(status_code=404, detail="Cobrança não encontrada")

    try:
        if charge.status == "approved" and billing.status != BillingStatus.PAID:
            billing.status = BillingStatus.PAID
            billing.paid_at = arrived_at
            user = activate_premium(db, billing.usuario_id, arrived_at)
            db.commit()

            if user:
                logger.info(f"[{billing.usuario_id}] Plano premium ativo até {user.plano_expiracao}")
            else:
                logger.warning(f"[{billing.id}] Cobrança paga para usuário inexistente: {billing.usuario_id}")

        elif charge.status in FAILED_PAYMENT_STATUSES and billing.status == BillingStatus.PENDING:
            billing.status = BillingStatus.CANCELLED
            db.commit()
            logger.info(f"[{billing.id}] Cobrança cancelada: {charge.status}")

    except Exception as e:
        db.rollback()
        logger.error(f"[{billing.id}] Erro ao processar webhook: {e}")
        raise HTTPException(status_code=500, detail="Erro interno")

    return JSONResponse(
        status_code=200,
        content={
            "message": "Webhook processado com sucesso",
            "billing_id": billing.id,
            "status": billing.status.value
        }
    )
