from conftest import TEST_PASSWORD, unique_email


def _login(client, email, password=TEST_PASSWORD):
    return client.post("/api/auth/login", data={"username": email, "password": password})


def test_register_coach_and_login(client):
    email = unique_email("newcoach")
    resp = client.post(
        "/api/auth/register",
        json={"email": email, "password": TEST_PASSWORD, "firstName": "Casey", "lastName": "Lift"},
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["email"] == email
    assert body["role"] == "coach"
    assert body["firstName"] == "Casey"
    assert "hashed_password" not in body and "hashedPassword" not in body

    login = _login(client, email)
    assert login.status_code == 200, login.text
    tokens = login.json()
    assert tokens["token_type"] == "bearer"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
    assert me.status_code == 200, me.text
    assert me.json()["id"] == body["id"]


def test_register_rejects_duplicate_email_and_weak_password(client):
    email = unique_email("dupe")
    payload = {"email": email, "password": TEST_PASSWORD, "firstName": "Dana"}
    assert client.post("/api/auth/register", json=payload).status_code == 201

    dupe = client.post("/api/auth/register", json=payload)
    assert dupe.status_code == 400
    assert dupe.json()["detail"] == "Email already registered"

    weak = client.post(
        "/api/auth/register",
        json={"email": unique_email("weak"), "password": "short", "firstName": "Wes"},
    )
    assert weak.status_code == 400


def test_login_with_wrong_password_fails(client, make_coach):
    coach = make_coach()
    resp = _login(client, coach.email, "wrong-password-1")
    assert resp.status_code == 401


def test_refresh_issues_new_tokens(client, make_coach):
    coach = make_coach()
    tokens = _login(client, coach.email).json()

    resp = client.post("/api/auth/refresh", json={"refreshToken": tokens["refresh_token"]})
    assert resp.status_code == 200, resp.text
    assert resp.json()["access_token"]

    # An access token is not accepted as a refresh token
    bad = client.post("/api/auth/refresh", json={"refreshToken": tokens["access_token"]})
    assert bad.status_code == 401


def test_me_requires_token(client):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"}).status_code == 401
