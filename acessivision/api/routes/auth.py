from fastapi import APIRouter, HTTPException, Request, Depends
from sqlalchemy.orm import Session
import logging
from ...api.middleware.auth import verify_token, require_same_user
from ...database.connection import get_db
from ...database.models import Conversation, User
from ...models.account import (
    AccountResponse,
    LoginRequest,
    LoginResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    UserSummary
)
from ...services.identity import IdentityError
from ...utils.helpers import utcnow
from ...utils.validators import validate_registration

router = APIRouter()
logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Email ou senha incorretos"


@router.post("/register", response_model=AccountResponse, status_code=201)
async def register(
        request: Request,
        body: RegisterRequest,
        db: Session = Depends(get_db)
):
    """Cria identidade e perfil do usuário"""

    validation_result = validate_registration(body.email, body.password, body.nome)
    if not validation_result["valid"]:
        raise HTTPException(status_code=400, detail=validation_result["message"])

    if db.query(User).filter(User.email == body.email).first():
        raise HTTPException(status_code=409, detail="Este email já está cadastrado")

    identity_provider = request.app.state.identity

    try:
        identity = identity_provider.create_user(db, body.email, body.password, display_name=body.nome)

        user = User(uid=identity.uid, nome=body.nome, email=body.email)
        db.add(user)
        db.commit()
        logger.info(f"[{identity.uid}] Usuário criado")

    except IdentityError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Erro ao criar usuário: {e}")
        raise HTTPException(status_code=500, detail=f"Erro ao criar usuário: {e}")

    return AccountResponse(
        message="Usuário criado com sucesso",
        usuario=UserSummary(**user.to_summary())
    )


@router.post("/login", response_model=LoginResponse)
async def login(
        request: Request,
        body: LoginRequest,
        db: Session = Depends(get_db)
):
    """Valida credenciais e emite token de sessão"""

    if not body.email or not body.password:
        raise HTTPException(status_code=400, detail="Email e senha são obrigatórios")

    user = db.query(User).filter(User.email == body.email).first()
    if not user:
        raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)

    identity_provider = request.app.state.identity
    identity = identity_provider.get_user_by_email(db, body.email)
    if not identity or not identity_provider.verify_password(identity, body.password):
        logger.warning(f"[{user.uid}] Tentativa de login com senha incorreta")
        raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)

    token = identity_provider.create_token(identity.uid, identity.email)

    return LoginResponse(
        message="Login realizado com sucesso",
        token=token,
        usuario=UserSummary(**user.to_summary())
    )


@router.put("/profile/{uid}", response_model=AccountResponse)
async def update_profile(
        uid: str,
        request: Request,
        body: ProfileUpdateRequest,
        db: Session = Depends(get_db),
        token: dict = Depends(verify_token)
):
    """Atualiza nome, telefone e foto do perfil"""

    require_same_user(uid, token)

    user = db.get(User, uid)
    if not user:
        raise HTTPException(status_code=404, detail="Usuário não encontrado")

    try:
        if body.nome:
            user.nome = body.nome
            request.app.state.identity.update_user(db, uid, display_name=body.nome)
        if body.telefone:
            user.telefone = body.telefone
        if body.foto_perfil:
            user.foto_perfil = body.foto_perfil
        user.atualizado_em = utcnow()

        db.commit()
        logger.info(f"[{uid}] Perfil atualizado")

    except Exception as e:
        db.rollback()
        logger.error(f"[{uid}] Erro ao atualizar perfil: {e}")
        raise HTTPException(status_code=500, detail="Erro ao atualizar perfil")

    return AccountResponse(
        message="Perfil atualizado com sucesso",
        usuario=UserSummary(**user.to_summary())
    )


@router.delete("/delete/{uid}", response_model=AccountResponse)
async def delete_account(
        uid: str,
        request: Request,
        db: Session = Depends(get_db),
        token: dict = Depends(verify_token)
):
    """Remove identidade, perfil e conversas do usuário"""

    require_same_user(uid, token)

    user = db.get(User, uid)
    identity_removed = request.app.state.identity.delete_user(db, uid)
    if not user and not identity_removed:
        raise HTTPException(status_code=404, detail="Usuário não encontrado")

    try:
        removed = (
            db.query(Conversation)
            .filter(Conversation.usuario_id == uid)
            .delete(synchronize_session=False)
        )
        if user:
            db.delete(user)
        db.commit()
        logger.info(f"[{uid}] Conta deletada ({removed} conversas removidas)")

    except Exception as e:
        db.rollback()
        logger.error(f"[{uid}] Erro ao deletar conta: {e}")
        raise HTTPException(status_code=500, detail="Erro ao deletar conta")

    return AccountResponse(message="Conta deletada com sucesso")
