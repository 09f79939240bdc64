import os
import secrets
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
import jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session
from ..database.models import Identity

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


class IdentityError(Exception):
    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code


class IdentityProvider:
    """Credenciais (hash bcrypt) e emissão de tokens de sessão JWT"""

    def __init__(self, secret=None, expires_hours=None, bcrypt_rounds=None):
        secret = secret or os.getenv("JWT_SECRET")
        if not secret:
            logger.warning("JWT_SECRET não está definida; usando segredo temporário para este processo")
            secret = secrets.token_urlsafe(32)
        self.secret = secret
        self.expires_hours = int(expires_hours or os.getenv("JWT_EXPIRES_HOURS", 24))

        rounds = int(bcrypt_rounds or os.getenv("BCRYPT_ROUNDS", 12))
        self.pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def create_user(self, db: Session, email: str, password: str, display_name: Optional[str] = None) -> Identity:
        """Cria a identidade; o commit fica a cargo de quem chamou"""
        if self.get_user_by_email(db, email):
            raise IdentityError("auth/email-already-exists", "Este email já está cadastrado no sistema")

        identity = Identity(
            email=email,
            password_hash=self.pwd_context.hash(password),
            display_name=display_name
        )
        db.add(identity)
        db.flush()
        return identity

    def get_user_by_email(self, db: Session, email: str) -> Optional[Identity]:
        return db.query(Identity).filter(Identity.email == email).first()

    def verify_password(self, identity: Identity, password: str) -> bool:
        try:
            return self.pwd_context.verify(password, identity.password_hash)
        except ValueError:
            return False

    def update_user(self, db: Session, uid: str, display_name: str) -> bool:
        identity = db.get(Identity, uid)
        if not identity:
            return False
        identity.display_name = display_name
        return True

    def delete_user(self, db: Session, uid: str) -> bool:
        identity = db.get(Identity, uid)
        if not identity:
            return False
        db.delete(identity)
        return True

    def create_token(self, uid: str, email: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": uid,
            "email": email,
            "iat": now,
            "exp": now + timedelta(hours=self.expires_hours)
        }
        return jwt.encode(payload, self.secret, algorithm=JWT_ALGORITHM)

    def decode_token(self, token: str) -> dict:
        return jwt.decode(token, self.secret, algorithms=[JWT_ALGORITHM])
