"""Request helpers shared by the API tests."""

PASSWORDS = {
    "Shyam": "shyamadmin",
    "Rakesh": "rakesh123",
    "Akhil": "akhil123",
    "Nabeel": "nabeel123",
}


def login(client, username, password=None):
    """Log a client in; returns the CSRF token to echo in unsafe requests."""
    response = client.post(
        "/api/auth/login",
        json={"username": username, "password": password or PASSWORDS[username]},
    )
    assert response.status_code == 200, response.text
    return response.json()["csrfToken"]


def csrf_headers(token):
    return {"X-CSRF-Token": token}


def sample_item(**overrides):
    data = {
        "jobNumber": "JOB-1",
        "customerName": "alice",
        "brand": "HP",
        "phoneNumber": "9876543210",
    }
    data.update(overrides)
    return data


def create_item(client, csrf, **overrides):
    response = client.post("/api/items", json=sample_item(**overrides), headers=csrf_headers(csrf))
    assert response.status_code == 201, response.text
    return response.json()
