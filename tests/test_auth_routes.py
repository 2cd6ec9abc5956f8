from fastapi.testclient import TestClient

CLIENT_EMAIL = "jane@example.com"


def signup_payload(email: str = CLIENT_EMAIL, password: str = "secret123"):
    return {
        "user_name": "Jane",
        "email": email,
        "phone_number": "5550100",
        "user_password": password,
    }


def test_signup_sets_cookies_and_returns_user(client: TestClient):
    res = client.post("/api/auth/signup", json=signup_payload())
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["message"] == "User has been created successfully"
    assert body["user"]["email"] == "jane@example.com"
    assert body["user"]["user_role"] == "customer"
    assert "user_password" not in body["user"]

    cookies = res.headers.get_list("set-cookie")
    access = next(c for c in cookies if c.startswith("access_token="))
    refresh = next(c for c in cookies if c.startswith("refresh_token="))
    assert "HttpOnly" in access and "SameSite=strict" in access and "Max-Age=900" in access
    assert "HttpOnly" in refresh and "Max-Age=604800" in refresh
    # not production, so cookies are not marked Secure
    assert "Secure" not in access

    me = client.get("/api/auth/profile")
    assert me.status_code == 200, me.text
    assert me.json()["email"] == "jane@example.com"


def test_signup_validation_errors(client: TestClient):
    res = client.post("/api/auth/signup", json=signup_payload(password="123"))
    assert res.status_code == 400
    assert "at least 6 characters" in res.json()["message"]

    client.post("/api/auth/signup", json=signup_payload())
    dup = client.post("/api/auth/signup", json=signup_payload())
    assert dup.status_code == 400
    assert "Email already exists" in dup.json()["message"]


def test_login(client: TestClient):
    client.post("/api/auth/signup", json=signup_payload())
    client.cookies.clear()

    bad = client.post("/api/auth/login", json={"email": "jane@example.com", "user_password": "nope"})
    assert bad.status_code == 401
    assert bad.json() == {"message": "Invalid email or password"}

    ok = client.post("/api/auth/login", json={"email": "jane@example.com", "user_password": "secret123"})
    assert ok.status_code == 200, ok.text
    assert ok.json()["email"] == "jane@example.com"
    assert client.get("/api/auth/profile").status_code == 200


def test_profile_requires_access_token(client: TestClient):
    res = client.get("/api/auth/profile")
    assert res.status_code == 401
    assert res.json()["message"] == "Unauthorized - No access token provided"


def test_bearer_header_is_accepted(client: TestClient, services):
    result = services.auth.signup("Jane", "jane@example.com", "5550100", "secret123")
    res = client.get(
        "/api/auth/profile",
        headers={"Authorization": f"Bearer {result.session.access_token}"},
    )
    assert res.status_code == 200


def test_logout_clears_cookies_and_is_idempotent(logged_in_client: TestClient):
    res = logged_in_client.post("/api/auth/logout")
    assert res.status_code == 200
    assert res.json() == {"message": "Logged out successfully"}
    assert logged_in_client.get("/api/auth/profile").status_code == 401

    again = logged_in_client.post("/api/auth/logout")
    assert again.status_code == 200


def test_refresh_token_flow(logged_in_client: TestClient):
    res = logged_in_client.post("/api/auth/refresh-token")
    assert res.status_code == 200, res.text
    assert res.json() == {"message": "Token refreshed successfully"}
    assert any(c.startswith("access_token=") for c in res.headers.get_list("set-cookie"))


def test_refresh_token_errors(client: TestClient):
    missing = client.post("/api/auth/refresh-token")
    assert missing.status_code == 401

    client.cookies.set("refresh_token", "garbage")
    invalid = client.post("/api/auth/refresh-token")
    assert invalid.status_code == 403


def test_refresh_after_relogin_rejects_old_token(client: TestClient):
    client.post("/api/auth/signup", json=signup_payload())
    old_refresh = client.cookies.get("refresh_token")
    client.post("/api/auth/login", json={"email": "jane@example.com", "user_password": "secret123"})

    client.cookies.clear()
    client.cookies.set("refresh_token", old_refresh)
    res = client.post("/api/auth/refresh-token")
    assert res.status_code == 401
    assert res.json()["message"] == "Refresh token is invalid"


def test_forgot_and_reset_password(client: TestClient, mailer, services):
    client.post("/api/auth/signup", json=signup_payload())

    unknown = client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})
    assert unknown.status_code == 404

    res = client.post("/api/auth/forgot-password", json={"email": "jane@example.com"})
    assert res.status_code == 200
    assert res.json() == {"message": "Password reset email sent"}
    text = mailer.sent[-1]["text"]
    token = text.split("token=")[1].split()[0]

    bad = client.put("/api/auth/reset-password", json={"resetToken": "nope", "newPassword": "new-pass-1"})
    assert bad.status_code == 400

    ok = client.put("/api/auth/reset-password", json={"resetToken": token, "newPassword": "new-pass-1"})
    assert ok.status_code == 200, ok.text
    assert ok.json() == {"message": "Password reset successful"}

    client.cookies.clear()
    login = client.post("/api/auth/login", json={"email": "jane@example.com", "user_password": "new-pass-1"})
    assert login.status_code == 200


def test_user_profile_and_update(logged_in_client: TestClient):
    res = logged_in_client.get("/api/auth/user-profile")
    assert res.status_code == 200
    body = res.json()
    assert body["user"] == {"user_name": "Jane", "phone_number": "5550100", "email": "jane@example.com"}
    assert body["orders"] == []

    upd = logged_in_client.put(
        "/api/auth/update-user-profile",
        json={"user_name": "Jane Doe", "email": "jane.doe@example.com", "phone_number": "5550199"},
    )
    assert upd.status_code == 200, upd.text
    assert upd.json()["message"] == "User profile updated successfully."
    assert logged_in_client.get("/api/auth/profile").json()["email"] == "jane.doe@example.com"


def test_health(client: TestClient):
    res = client.get("/api/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"
