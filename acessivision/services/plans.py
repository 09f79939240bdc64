import os
import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy import or_, update
from sqlalchemy.orm import Session
from ..database.models import User
from ..models.billing import Plan, PlanType, PLAN_DURATION_DAYS
from ..utils.helpers import days_from_now, utcnow

logger = logging.getLogger(__name__)


def premium_price() -> float:
    return round(float(os.getenv("PREMIUM_PRICE", "19.90")), 2)


def list_plans() -> List[Plan]:
    return [
        Plan(
            id=PlanType.FREE,
            nome="Gratuito",
            preco=0.0,
            recursos=["Descrição de imagens"]
        ),
        Plan(
            id=PlanType.PREMIUM,
            nome="Premium",
            preco=premium_price(),
            duracao_dias=PLAN_DURATION_DAYS,
            recursos=["Descrição de imagens", "Descrição em áudio", "Histórico de conversas"]
        ),
    ]


def is_premium(user: User, now: Optional[datetime] = None) -> bool:
    now = now or utcnow()
    return (
        user.plano == PlanType.PREMIUM
        and user.plano_expiracao is not None
        and user.plano_expiracao > now
    )


def refresh_plan_status(db: Session, user: User, now: Optional[datetime] = None) -> User:
    """Rebaixa para free o plano premium expirado"""
    now = now or utcnow()
    if user.plano != PlanType.PREMIUM or is_premium(user, now):
        return user

    # UPDATE condicional: só rebaixa se o plano ainda estiver expirado no banco
    result = db.execute(
        update(User)
        .where(
            User.uid == user.uid,
            User.plano == PlanType.PREMIUM,
            or_(User.plano_expiracao.is_(None), User.plano_expiracao <= now)
        )
        .values(plano=PlanType.FREE, plano_expiracao=None, atualizado_em=now)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    db.refresh(user)

    if result.rowcount:
        logger.info(f"Plano do usuário {user.uid} expirado; rebaixado para free")
    return user


def activate_premium(db: Session, user_id: str, now: Optional[datetime] = None) -> Optional[User]:
    """Ativa o premium por 30 dias a partir de agora; o commit fica a cargo de quem chamou"""
    user = db.get(User, user_id)
    if not user:
        return None

    now = now or utcnow()
    user.plano = PlanType.PREMIUM
    user.plano_expiracao = days_from_now(PLAN_DURATION_DAYS, now)
    user.atualizado_em = now
    return user
