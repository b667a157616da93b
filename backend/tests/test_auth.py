"""
Authentication flow tests.

Verifies:
- Registration validation, forced "user" role and duplicate email conflict
- Login returns a usable token; failures share one generic message
- Forgot password / verify OTP / reset password lifecycle
"""

from datetime import timedelta

from coffeeshop.models import ForgotPassword, User
from coffeeshop.services.token_service import decode_token
from coffeeshop.time_utils import utcnow


def _register(client, **overrides):
    body = {"fullname": "Jane Doe", "email": "jane@coffee.test", "password": "secret123"}
    body.update(overrides)
    return client.post("/auth/register", json=body)


class TestRegister:

    def test_register_creates_user_role(self, client, db_session):
        resp = _register(client, role="admin")
        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["email"] == "jane@coffee.test"
        assert data["role"] == "user"
        assert "password" not in data
        assert "password_hash" not in data

        user = db_session.query(User).filter_by(email="jane@coffee.test").one()
        assert user.password_hash != "secret123"

    def test_register_collects_field_errors(self, client, db_session):
        resp = client.post("/auth/register", json={"email": "not-an-email", "password": "123"})
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["success"] is False
        assert set(body["data"]) == {"fullname", "email", "password"}

    def test_register_duplicate_email_conflicts(self, client, db_session):
        assert _register(client).status_code == 201
        resp = _register(client, email="JANE@coffee.test")
        assert resp.status_code == 409

    def test_register_rejects_non_string_password(self, client, db_session):
        resp = _register(client, password=1234567)
        assert resp.status_code == 400
        assert resp.get_json()["data"] == {"password": "Password must be a string"}
        assert db_session.query(User).count() == 0

    def test_registered_account_can_log_in(self, client, db_session):
        created = _register(client).get_json()["data"]

        resp = client.post("/auth/login", json={"email": "jane@coffee.test", "password": "secret123"})
        assert resp.status_code == 200
        identity = decode_token(resp.get_json()["data"]["token"])
        assert identity.id == created["id"]
        assert identity.email == "jane@coffee.test"
        assert identity.role == "user"


class TestLogin:

    def test_login_success_returns_token(self, client, customer):
        resp = client.post("/auth/login", json={"email": customer.email, "password": "secret123"})
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        identity = decode_token(data["token"])
        assert identity.id == customer.id
        assert identity.role == "user"

    def test_unknown_email_and_wrong_password_look_identical(self, client, customer):
        wrong_pw = client.post("/auth/login", json={"email": customer.email, "password": "nope-nope"})
        unknown = client.post("/auth/login", json={"email": "ghost@coffee.test", "password": "secret123"})
        assert wrong_pw.status_code == unknown.status_code == 401
        assert wrong_pw.get_json() == unknown.get_json()
        assert wrong_pw.get_json()["message"] == "Email or password incorrect"

    def test_login_missing_fields(self, client, db_session):
        resp = client.post("/auth/login", json={})
        assert resp.status_code == 400
        assert set(resp.get_json()["data"]) == {"email", "password"}

    def test_non_string_password_is_a_generic_failure(self, client, customer):
        known = client.post("/auth/login", json={"email": customer.email, "password": 123456})
        unknown = client.post("/auth/login", json={"email": "ghost@coffee.test", "password": 123456})
        assert known.status_code == unknown.status_code == 401
        assert known.get_json() == unknown.get_json()


class TestPasswordReset:

    def _request_otp(self, client, db_session, email):
        resp = client.post("/auth/forgot-password", json={"email": email})
        assert resp.status_code == 200
        return db_session.query(ForgotPassword).join(User, User.id == ForgotPassword.user_id).filter(
            User.email == email
        ).one()

    def test_unknown_email_is_404(self, client, db_session):
        resp = client.post("/auth/forgot-password", json={"email": "ghost@coffee.test"})
        assert resp.status_code == 404

    def test_full_reset_flow(self, client, db_session, customer):
        record = self._request_otp(client, db_session, customer.email)
        otp = record.token
        assert len(otp) == 6 and otp.isdigit()

        resp = client.post("/auth/verify-otp", json={"email": customer.email, "otp": otp})
        assert resp.status_code == 200

        resp = client.patch("/auth/reset-password", json={"token": otp, "password": "brand-new-pw"})
        assert resp.status_code == 200

        assert db_session.query(ForgotPassword).count() == 0
        login = client.post("/auth/login", json={"email": customer.email, "password": "brand-new-pw"})
        assert login.status_code == 200

        # Code is consumed
        again = client.patch("/auth/reset-password", json={"token": otp, "password": "another-pw"})
        assert again.status_code == 401

    def test_rerequest_replaces_record(self, client, db_session, customer):
        self._request_otp(client, db_session, customer.email)
        self._request_otp(client, db_session, customer.email)
        assert db_session.query(ForgotPassword).filter_by(user_id=customer.id).count() == 1

    def test_wrong_otp_rejected(self, client, db_session, customer):
        record = self._request_otp(client, db_session, customer.email)
        wrong = "000000" if record.token != "000000" else "111111"
        resp = client.post("/auth/verify-otp", json={"email": customer.email, "otp": wrong})
        assert resp.status_code == 401

    def test_expired_otp_rejected(self, client, db_session, customer):
        record = self._request_otp(client, db_session, customer.email)
        record.expires_at = utcnow() - timedelta(seconds=1)
        db_session.commit()

        verify = client.post("/auth/verify-otp", json={"email": customer.email, "otp": record.token})
        assert verify.status_code == 401
        reset = client.patch("/auth/reset-password", json={"token": record.token, "password": "brand-new-pw"})
        assert reset.status_code == 401

    def test_reset_validates_password(self, client, db_session, customer):
        record = self._request_otp(client, db_session, customer.email)
        resp = client.patch("/auth/reset-password", json={"token": record.token, "password": "123"})
        assert resp.status_code == 400
        assert "password" in resp.get_json()["data"]
