"""
Password reset token lifecycle: request, check, complete
"""
import re
from datetime import timedelta

from models import db
from models.user import User

NEW_PASSWORD = "brand-new-pass"


def _request_token(client, outbox, email="jane.doe@example.com"):
    resp = client.post("/auth/password/reset", json={"email": email})
    assert resp.status_code == 200, resp.get_json()
    match = re.search(r"http://localhost/auth/password/reset/([0-9a-f]+)", outbox[-1].body)
    return match.group(1)


def test_reset_request_stores_token_and_emails_link(app, client, make_user, outbox, frozen_now):
    user = make_user()
    now = frozen_now()
    resp = client.post("/auth/password/reset", json={"email": "Jane.Doe@Example.com"})
    assert resp.status_code == 200
    assert resp.get_json() == {"msg": "Email sent"}

    with app.app_context():
        stored = db.session.get(User, user.id)
        assert re.fullmatch(r"[0-9a-f]{32}", stored.password_reset_token)
        assert stored.password_reset_expires == now + timedelta(hours=1)

    assert len(outbox) == 1
    msg = outbox[0]
    assert msg.recipients == [user.email]
    assert msg.subject == "Reset password requested"
    assert f"http://localhost/auth/password/reset/{stored.password_reset_token}" in msg.body


def test_reset_request_unknown_email(app, client, make_user, outbox):
    make_user()
    resp = client.post("/auth/password/reset", json={"email": "ghost@example.com"})
    assert resp.status_code == 401
    assert resp.get_json() == {"msg": "Email ghost@example.com not found"}
    assert outbox == []
    with app.app_context():
        assert User.query.filter(User.password_reset_token.isnot(None)).count() == 0


def test_reset_request_invalid_email(client, outbox):
    resp = client.post("/auth/password/reset", json={"email": "nope"})
    assert resp.status_code == 400
    assert resp.get_json() == {"msg": "Email is not valid"}


def test_new_request_replaces_outstanding_token(client, make_user, outbox):
    make_user()
    first = _request_token(client, outbox)
    second = _request_token(client, outbox)
    assert first != second
    assert client.get(f"/auth/password/reset/{first}").status_code == 400
    assert client.get(f"/auth/password/reset/{second}").status_code == 200


def test_reset_request_mail_failure_answers_once_with_500(app, client, make_user, monkeypatch):
    user = make_user()

    def fail(msg, verify=True):
        raise ConnectionRefusedError("smtp down")
    monkeypatch.setattr("utils.mail._deliver", fail)

    resp = client.post("/auth/password/reset", json={"email": user.email})
    assert resp.status_code == 500
    assert resp.get_json() == {"msg": "Error sending the password reset email"}


def test_token_check_valid_until_expiry(client, make_user, outbox, frozen_now):
    make_user()
    token = _request_token(client, outbox)

    frozen_now(minutes=59, seconds=59)
    resp = client.get(f"/auth/password/reset/{token}")
    assert resp.status_code == 200
    assert resp.get_json() == {"msg": "Valid token"}

    frozen_now(seconds=1)  # exactly at expiry
    resp = client.get(f"/auth/password/reset/{token}")
    assert resp.status_code == 400
    assert resp.get_json() == {"msg": "Invalid or expired token"}


def test_token_check_unknown_token(client):
    resp = client.get("/auth/password/reset/deadbeef")
    assert resp.status_code == 400
    assert resp.get_json() == {"msg": "Invalid or expired token"}


def test_complete_reset(app, client, make_user, outbox, frozen_now):
    user = make_user()
    token = _request_token(client, outbox)

    resp = client.post(f"/auth/password/reset/{token}",
                       json={"password": NEW_PASSWORD, "confirmPassword": NEW_PASSWORD})
    assert resp.status_code == 200
    assert resp.get_json() == {"msg": "Password updated"}

    with app.app_context():
        stored = db.session.get(User, user.id)
        assert stored.check_password(NEW_PASSWORD)
        assert stored.password_reset_token is None
        assert stored.password_reset_expires is None

    # Signed in as that user
    assert client.get("/auth/login").get_json() == {"msg": "Signed in"}

    confirmation = outbox[-1]
    assert confirmation.subject == "Your password has been changed"
    assert user.email in confirmation.body

    # Token is single use
    assert client.get(f"/auth/password/reset/{token}").status_code == 400
    again = client.post(f"/auth/password/reset/{token}",
                        json={"password": NEW_PASSWORD, "confirmPassword": NEW_PASSWORD})
    assert again.status_code == 400


def test_complete_reset_rechecks_expiry(app, client, make_user, outbox, frozen_now):
    user = make_user()
    token = _request_token(client, outbox)
    assert client.get(f"/auth/password/reset/{token}").status_code == 200

    frozen_now(hours=1)
    resp = client.post(f"/auth/password/reset/{token}",
                       json={"password": NEW_PASSWORD, "confirmPassword": NEW_PASSWORD})
    assert resp.status_code == 400
    assert resp.get_json() == {"msg": "Invalid or expired token"}
    with app.app_context():
        assert not db.session.get(User, user.id).check_password(NEW_PASSWORD)


def test_complete_reset_validation(client, make_user, outbox):
    make_user()
    token = _request_token(client, outbox)
    resp = client.post(f"/auth/password/reset/{token}", json={"password": "short", "confirmPassword": "short"})
    assert resp.status_code == 400
    assert resp.get_json() == {"msg": "Password must be at least 8 characters long."}

    resp = client.post(f"/auth/password/reset/{token}",
                       json={"password": NEW_PASSWORD, "confirmPassword": "something-else"})
    assert resp.get_json() == {"msg": "Passwords must match."}
    # Token untouched by failed validation
    assert client.get(f"/auth/password/reset/{token}").status_code == 200


def test_complete_reset_survives_confirmation_mail_failure(app, client, make_user, outbox, monkeypatch):
    user = make_user()
    token = _request_token(client, outbox)

    def fail(msg, verify=True):
        raise ConnectionRefusedError("smtp down")
    monkeypatch.setattr("utils.mail._deliver", fail)

    resp = client.post(f"/auth/password/reset/{token}",
                       json={"password": NEW_PASSWORD, "confirmPassword": NEW_PASSWORD})
    assert resp.status_code == 200
    with app.app_context():
        assert db.session.get(User, user.id).check_password(NEW_PASSWORD)


def test_reset_request_retries_on_self_signed_chain_and_answers_once(client, make_user, monkeypatch, caplog):
    import logging
    import ssl

    user = make_user()
    attempts = []

    def deliver(msg, verify=True):
        attempts.append(verify)
        if verify:
            raise ssl.SSLCertVerificationError(
                1, "certificate verify failed: self-signed certificate in certificate chain")
    monkeypatch.setattr("utils.mail._deliver", deliver)

    with caplog.at_level(logging.WARNING):
        resp = client.post("/auth/password/reset", json={"email": user.email})
    assert resp.status_code == 200
    assert resp.get_json() == {"msg": "Email sent"}
    assert attempts == [True, False]
    assert "Self signed certificate in certificate chain" in caplog.text
