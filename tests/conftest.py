from __future__ import annotations

import os
import tempfile
from pathlib import Path

# Defaults de teste definidos antes de importar a aplicação
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("UPLOAD_DIR", str(Path(tempfile.gettempdir()) / "acessivision-tests"))

import pytest
from fastapi.testclient import TestClient

from acessivision.database.connection import SessionLocal, create_db_and_tables, drop_db_and_tables
from acessivision.models.billing import PixCharge
from acessivision.services.captioner import CompleteAnswer, FragmentedAnswer
from acessivision.services.errors import PaymentError
from acessivision.services.file_handler import FileHandler
from acessivision.services.identity import IdentityProvider


class FakeTranslator:
    """Responde com traduções pré-definidas e registra as chamadas"""

    def __init__(self, responses=None, fail_on=None):
        self.responses = dict(responses or {})
        self.fail_on = fail_on
        self.calls = []

    async def translate(self, text, dest, src="auto"):
        self.calls.append((text, src, dest))
        if self.fail_on is not None and text == self.fail_on:
            raise RuntimeError("serviço de tradução indisponível")
        return self.responses.get(text, text)


async def _fragments(chunks):
    for chunk in chunks:
        yield chunk


class FakeCaptioner:
    def __init__(self, answer="A dog", chunks=None, error=None):
        self.answer = answer
        self.chunks = chunks
        self.error = error
        self.calls = []

    async def query(self, image, question, mime_type="image/jpeg"):
        self.calls.append((image, question, mime_type))
        if self.error:
            raise self.error
        if self.chunks is not None:
            return FragmentedAnswer(_fragments(self.chunks))
        return CompleteAnswer(self.answer)


class FakeSynthesizer:
    def __init__(self, audio=b"ID3fake-mp3", error=None):
        self.audio = audio
        self.error = error
        self.calls = []

    async def save(self, text, output_path):
        self.calls.append((text, output_path))
        if self.error:
            raise self.error
        with open(output_path, "wb") as f:
            f.write(self.audio)


class FakePaymentClient:
    def __init__(self):
        self.created = []
        self.statuses = {}
        self.fail = False
        self._next_id = 1000

    async def create_pix_charge(self, amount, description, payer_email, external_reference, notification_url=None):
        if self.fail:
            raise PaymentError("Erro Mercado Pago em create_pix_charge: Status=500", 500)
        self._next_id += 1
        payment_id = str(self._next_id)
        self.statuses[payment_id] = ("pending", external_reference)
        self.created.append({
            "amount": amount,
            "payer_email": payer_email,
            "external_reference": external_reference,
            "notification_url": notification_url,
        })
        return PixCharge(
            payment_id=payment_id,
            status="pending",
            qr_code="00020126-pix-copia-e-cola",
            qr_code_base64="iVBORw0KGgo=",
            ticket_url=f"https://www.mercadopago.com.br/payments/{payment_id}/ticket",
            external_reference=external_reference
        )

    async def get_payment(self, payment_id):
        if payment_id not in self.statuses:
            raise PaymentError(f"Erro Mercado Pago em get_payment({payment_id}): Status=404", 404)
        status, reference = self.statuses[payment_id]
        return PixCharge(payment_id=payment_id, status=status, external_reference=reference)

    def set_status(self, payment_id, status):
        _, reference = self.statuses[payment_id]
        self.statuses[payment_id] = (status, reference)


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def file_handler(upload_dir):
    return FileHandler(upload_dir)


@pytest.fixture
def translator():
    return FakeTranslator({
        "O que há na imagem?": "What is in the image?",
        "Descreva a imagem.": "Describe the image.",
        "A dog": "Um cachorro",
    })


@pytest.fixture
def captioner():
    return FakeCaptioner()


@pytest.fixture
def synthesizer():
    return FakeSynthesizer()


@pytest.fixture
def payment_client():
    return FakePaymentClient()


@pytest.fixture
def db_session():
    create_db_and_tables()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        drop_db_and_tables()


@pytest.fixture
def app(translator, captioner, synthesizer, payment_client, file_handler, db_session):
    from app import create_app

    return create_app(
        translator=translator,
        captioner=captioner,
        synthesizer=synthesizer,
        identity=IdentityProvider(secret="test-secret", bcrypt_rounds=4),
        payment_client=payment_client,
        file_handler=file_handler
    )


@pytest.fixture
def client(app):
    return TestClient(app)
