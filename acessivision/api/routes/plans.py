from fastapi import APIRouter, HTTPException, Request, Depends
from sqlalchemy.orm import Session
from typing import List
import logging
import os
from ...database.connection import get_db
from ...database.models import Billing, User
from ...models.billing import (
    BillingCreateRequest,
    BillingResponse,
    BillingStatus,
    Plan,
    PlanStatusResponse,
    PlanType,
    PLAN_DURATION_DAYS
)
from ...services.errors import PaymentError
from ...services.plans import is_premium, list_plans, premium_price, refresh_plan_status

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/plans", response_model=List[Plan])
async def get_plans():
    """Lista os planos disponíveis"""
    return list_plans()


@router.get("/plans/status/{uid}", response_model=PlanStatusResponse)
async def get_plan_status(uid: str, db: Session = Depends(get_db)):
    """Consulta o plano do usuário, rebaixando premium expirado"""

    user = db.get(User, uid)
    if not user:
        raise HTTPException(status_code=404, detail="Usuário não encontrado")

    user = refresh_plan_status(db, user)

    return PlanStatusResponse(
        uid=user.uid,
        plano=user.plano,
        plano_expiracao=user.plano_expiracao,
        premium=is_premium(user)
    )


@router.post("/billing", response_model=BillingResponse, status_code=201)
async def create_billing(
        request: Request,
        body: BillingCreateRequest,
        db: Session = Depends(get_db)
):
    """Abre uma cobrança PIX para o plano premium"""

    user = db.get(User, body.uid)
    if not user:
        raise HTTPException(status_code=404, detail="Usuário não encontrado")

    billing = Billing(
        usuario_id=user.uid,
        plano=PlanType.PREMIUM,
        valor=premium_price(),
        status=BillingStatus.PENDING
    )
    db.add(billing)
    db.flush()

    app_url = os.getenv("APP_URL")
    notification_url = f"{app_url.rstrip('/')}/webhooks/payment" if app_url else None

    try:
        payment_client = request.app.state.payment_client
        charge = await payment_client.create_pix_charge(
            amount=billing.valor,
            description=f"AcessiVision Premium - {PLAN_DURATION_DAYS} dias",
            payer_email=user.email,
            external_reference=billing.id,
            notification_url=notification_url
        )
    except PaymentError as e:
        db.rollback()
        logger.error(f"[{user.uid}] Erro ao criar cobrança: {e}")
        raise HTTPException(status_code=502, detail=f"Erro ao criar cobrança: {e}")

    billing.payment_id = charge.payment_id
    billing.qr_code = charge.qr_code
    billing.qr_code_base64 = charge.qr_code_base64
    billing.ticket_url = charge.ticket_url
    db.commit()
    db.refresh(billing)

    logger.info(f"[{user.uid}] Cobrança {billing.id} criada (pagamento {charge.payment_id})")
    return BillingResponse(**billing.to_dict())


@router.get("/billing/{billing_id}", response_model=BillingResponse)
async def get_billing(billing_id: str, db: Session = Depends(get_db)):
    """Consulta o status de uma cobrança"""

    billing = db.get(Billing, billing_id)
    if not billing:
        raise HTTPException(status_code=404, detail="Cobrança não encontrada")
    return BillingResponse(**billing.to_dict())
