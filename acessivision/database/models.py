from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, JSON, String, Text, Enum as SQLEnum
from .connection import Base
from ..models.billing import BillingStatus, PlanType
from ..utils.helpers import utcnow
import uuid


def _new_id() -> str:
    return str(uuid.uuid4())


def _default_settings() -> dict:
    return {"notificacoes": True, "tema": "system"}


class Identity(Base):
    """Credenciais mantidas pelo provedor de identidade"""
    __tablename__ = "identities"

    uid = Column(String, primary_key=True, default=_new_id)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    display_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class User(Base):
    __tablename__ = "users"

    uid = Column(String, primary_key=True)
    nome = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    telefone = Column(String, nullable=True)
    foto_perfil = Column(String, nullable=True)

    # Plano
    plano = Column(SQLEnum(PlanType), nullable=False, default=PlanType.FREE)
    plano_expiracao = Column(DateTime, nullable=True)

    autenticar_email = Column(Boolean, default=False, nullable=False)
    criar_conta_manual = Column(Boolean, default=True, nullable=False)
    configuracoes = Column(JSON, nullable=True, default=_default_settings)

    data_criacao = Column(DateTime, default=utcnow, nullable=False)
    atualizado_em = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def to_summary(self) -> dict:
        return {"uid": self.uid, "nome": self.nome, "email": self.email}


class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(String, primary_key=True, default=_new_id)
    usuario_id = Column(String, ForeignKey("users.uid", ondelete="CASCADE"), index=True, nullable=False)
    pergunta = Column(Text, nullable=True)
    resposta = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Billing(Base):
    __tablename__ = "billings"

    id = Column(String, primary_key=True, default=_new_id)
    usuario_id = Column(String, index=True, nullable=False)
    plano = Column(SQLEnum(PlanType), nullable=False, default=PlanType.PREMIUM)
    valor = Column(Float, nullable=False)
    status = Column(SQLEnum(BillingStatus), nullable=False, default=BillingStatus.PENDING)

    # Dados da cobrança PIX
    payment_id = Column(String, nullable=True, index=True)
    qr_code = Column(Text, nullable=True)
    qr_code_base64 = Column(Text, nullable=True)
    ticket_url = Column(String, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    paid_at = Column(DateTime, nullable=True)

    def to_dict(self):
        """Converte o modelo SQLAlchemy para dicionário"""
        return {
            "billing_id": self.id,
            "status": self.status,
            "valor": self.valor,
            "payment_id": self.payment_id,
            "qr_code": self.qr_code,
            "qr_code_base64": self.qr_code_base64,
            "ticket_url": self.ticket_url,
            "created_at": self.created_at,
            "paid_at": self.paid_at,
        }
