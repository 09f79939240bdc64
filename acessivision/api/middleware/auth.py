from fastapi import HTTPException, Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import jwt

security = HTTPBearer(auto_error=False)


async def verify_token(
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> dict:
    """Verifica o token de sessão emitido no login"""
    if not credentials:
        raise HTTPException(status_code=401, detail="Token não fornecido")

    try:
        return request.app.state.identity.decode_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expirado")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Token inválido")


def require_same_user(uid: str, token: dict) -> None:
    """Só o dono da conta pode alterá-la"""
    if token.get("sub") != uid:
        raise HTTPException(status_code=403, detail="Acesso negado")
