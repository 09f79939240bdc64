from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum

PLAN_DURATION_DAYS = 30


class PlanType(str, Enum):
    FREE = "free"
    PREMIUM = "premium"


class BillingStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class Plan(BaseModel):
    id: PlanType
    nome: str
    preco: float
    duracao_dias: Optional[int] = None
    recursos: List[str] = []


class PlanStatusResponse(BaseModel):
    uid: str
    plano: PlanType
    plano_expiracao: Optional[datetime] = None
    premium: bool


class BillingCreateRequest(BaseModel):
    uid: str = Field(..., min_length=1)


class BillingResponse(BaseModel):
    billing_id: str
    status: BillingStatus
    valor: float
    payment_id: Optional[str] = None
    qr_code: Optional[str] = None
    qr_code_base64: Optional[str] = None
    ticket_url: Optional[str] = None
    created_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None


class PixCharge(BaseModel):
    """Cobrança PIX retornada pelo provedor de pagamento"""
    payment_id: str
    status: str
    qr_code: Optional[str] = None
    qr_code_base64: Optional[str] = None
    ticket_url: Optional[str] = None
    external_reference: Optional[str] = None
