API = "/api/v1/auth"


def test_login_json(client, seller):
    response = client.post(f"{API}/login-json", json={"email": seller.email, "password": "secret123"})
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == "seller"

    me = client.get(f"{API}/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.json()["email"] == seller.email


def test_login_form(client, admin):
    response = client.post(f"{API}/login", data={"username": admin.email, "password": "secret123"})
    assert response.status_code == 200
    assert response.json()["user"]["role"] == "admin"


def test_wrong_password(client, seller):
    response = client.post(f"{API}/login-json", json={"email": seller.email, "password": "incorrecta"})
    assert response.status_code == 401


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/api/v1/").json()["available_endpoints"]["sales"] == "/api/v1/sales"
