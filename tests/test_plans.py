import hashlib
import hmac
from datetime import timedelta
import pytest
from acessivision.database.models import Billing, User
from acessivision.models.billing import BillingStatus, PlanType
from acessivision.services.plans import refresh_plan_status
from acessivision.utils.helpers import utcnow


@pytest.fixture(autouse=True)
def payment_env(monkeypatch):
    monkeypatch.delenv("MERCADOPAGO_WEBHOOK_SECRET", raising=False)
    monkeypatch.delenv("APP_URL", raising=False)
    monkeypatch.delenv("PREMIUM_PRICE", raising=False)


@pytest.fixture
def user(db_session):
    user = User(uid="user-1", nome="Ana", email="ana@example.com")
    db_session.add(user)
    db_session.commit()
    return user


def _create_billing(client, uid="user-1"):
    return client.post("/billing", json={"uid": uid})


def _notify(client, payment_id, headers=None):
    return client.post(
        "/webhooks/payment",
        json={"type": "payment", "action": "payment.updated", "data": {"id": payment_id}},
        headers=headers or {}
    )


class TestPlans:
    def test_list(self, client):
        response = client.get("/plans")

        assert response.status_code == 200
        free, premium = response.json()
        assert free["id"] == "free"
        assert free["preco"] == 0.0
        assert premium["id"] == "premium"
        assert premium["preco"] == 19.9
        assert premium["duracao_dias"] == 30

    def test_status_free(self, client, user):
        response = client.get("/plans/status/user-1")

        assert response.status_code == 200
        assert response.json() == {"uid": "user-1", "plano": "free", "plano_expiracao": None, "premium": False}

    def test_status_active_premium(self, client, db_session, user):
        user.plano = PlanType.PREMIUM
        user.plano_expiracao = utcnow() + timedelta(days=10)
        db_session.commit()

        data = client.get("/plans/status/user-1").json()

        assert data["plano"] == "premium"
        assert data["premium"] is True
        assert data["plano_expiracao"] is not None

    def test_expired_premium_is_downgraded(self, client, db_session, user):
        user.plano = PlanType.PREMIUM
        user.plano_expiracao = utcnow() - timedelta(minutes=1)
        db_session.commit()

        data = client.get("/plans/status/user-1").json()

        assert data == {"uid": "user-1", "plano": "free", "plano_expiracao": None, "premium": False}
        db_session.expire_all()
        assert db_session.get(User, "user-1").plano == PlanType.FREE

    def test_refresh_leaves_renewed_plan_alone(self, db_session, user):
        now = utcnow()
        user.plano = PlanType.PREMIUM
        user.plano_expiracao = now + timedelta(days=30)
        db_session.commit()

        refreshed = refresh_plan_status(db_session, user, now + timedelta(days=1))

        assert refreshed.plano == PlanType.PREMIUM

    def test_status_unknown_user(self, client, db_session):
        response = client.get("/plans/status/ninguem")

        assert response.status_code == 404


class TestBilling:
    def test_create(self, client, payment_client, db_session, user):
        response = _create_billing(client)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["valor"] == 19.9
        assert data["payment_id"] == "1001"
        assert data["qr_code"] == "00020126-pix-copia-e-cola"
        assert data["paid_at"] is None
        assert payment_client.created[0]["external_reference"] == data["billing_id"]
        assert payment_client.created[0]["payer_email"] == "ana@example.com"
        assert payment_client.created[0]["notification_url"] is None

    def test_notification_url_from_app_url(self, client, payment_client, user, monkeypatch):
        monkeypatch.setenv("APP_URL", "https://api.acessivision.test/")

        _create_billing(client)

        assert payment_client.created[0]["notification_url"] == "https://api.acessivision.test/webhooks/payment"

    def test_provider_failure(self, client, payment_client, db_session, user):
        payment_client.fail = True

        response = _create_billing(client)

        assert response.status_code == 502
        assert response.json()["detail"].startswith("Erro ao criar cobrança:")
        assert db_session.query(Billing).count() == 0

    def test_unknown_user(self, client, payment_client, db_session):
        response = _create_billing(client, uid="ninguem")

        assert response.status_code == 404
        assert payment_client.created == []

    def test_get(self, client, user):
        billing_id = _create_billing(client).json()["billing_id"]

        response = client.get(f"/billing/{billing_id}")

        assert response.status_code == 200
        assert response.json()["billing_id"] == billing_id

    def test_get_unknown(self, client, db_session):
        response = client.get("/billing/nao-existe")

        assert response.status_code == 404
        assert response.json()["detail"] == "Cobrança não encontrada"


class TestPaymentWebhook:
    def test_approved_payment_activates_premium(self, client, payment_client, db_session, user):
        billing_id = _create_billing(client).json()["billing_id"]
        payment_client.set_status("1001", "approved")

        before = utcnow()
        response = _notify(client, "1001")
        after = utcnow()

        assert response.status_code == 200
        assert response.json() == {
            "message": "Webhook processado com sucesso",
            "billing_id": billing_id,
            "status": "paid"
        }
        db_session.expire_all()
        refreshed = db_session.get(User, "user-1")
        assert refreshed.plano == PlanType.PREMIUM
        assert before + timedelta(days=30) <= refreshed.plano_expiracao <= after + timedelta(days=30)
        billing = db_session.get(Billing, billing_id)
        assert billing.status == BillingStatus.PAID
        assert billing.paid_at is not None

    def test_duplicate_notification_does_not_extend_plan(self, client, payment_client, db_session, user):
        _create_billing(client)
        payment_client.set_status("1001", "approved")
        _notify(client, "1001")
        db_session.expire_all()
        first_expiration = db_session.get(User, "user-1").plano_expiracao

        response = _notify(client, "1001")

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(User, "user-1").plano_expiracao == first_expiration

    def test_pending_payment_changes_nothing(self, client, db_session, user):
        _create_billing(client)

        response = _notify(client, "1001")

        assert response.json()["status"] == "pending"
        db_session.expire_all()
        assert db_session.get(User, "user-1").plano == PlanType.FREE

    def test_rejected_payment_cancels_billing(self, client, payment_client, db_session, user):
        _create_billing(client)
        payment_client.set_status("1001", "rejected")

        response = _notify(client, "1001")

        assert response.json()["status"] == "cancelled"
        db_session.expire_all()
        assert db_session.get(User, "user-1").plano == PlanType.FREE

    def test_non_payment_event_is_ignored(self, client, db_session):
        response = client.post("/webhooks/payment", json={"type": "merchant_order", "data": {"id": "1"}})

        assert response.status_code == 200
        assert response.json() == {"message": "Evento ignorado"}

    def test_query_string_notification(self, client, payment_client, db_session, user):
        _create_billing(client)
        payment_client.set_status("1001", "approved")

        response = client.post("/webhooks/payment?type=payment&data.id=1001")

        assert response.status_code == 200
        assert response.json()["status"] == "paid"

    def test_unknown_payment(self, client, db_session):
        response = _notify(client, "9999")

        assert response.status_code == 502

    def test_payment_without_billing(self, client, payment_client, db_session):
        payment_client.statuses["777"] = ("approved", "cobranca-inexistente")

        response = _notify(client, "777")

        assert response.status_code == 404

    def test_invalid_signature(self, client, payment_client, db_session, user, monkeypatch):
        monkeypatch.setenv("MERCADOPAGO_WEBHOOK_SECRET", "segredo-webhook")
        _create_billing(client)
        payment_client.set_status("1001", "approved")

        response = _notify(client, "1001", headers={"x-signature": "ts=1,v1=deadbeef", "x-request-id": "req-1"})

        assert response.status_code == 401
        db_session.expire_all()
        assert db_session.get(User, "user-1").plano == PlanType.FREE

    def test_valid_signature(self, client, payment_client, db_session, user, monkeypatch):
        monkeypatch.setenv("MERCADOPAGO_WEBHOOK_SECRET", "segredo-webhook")
        _create_billing(client)
        payment_client.set_status("1001", "approved")
        manifest = "id:1001;request-id:req-1;ts:1700000000;"
        digest = hmac.new(b"segredo-webhook", manifest.encode(), hashlib.sha256).hexdigest()

        response = _notify(
            client,
            "1001",
            headers={"x-signature": f"ts=1700000000,v1={digest}", "x-request-id": "req-1"}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "paid"
