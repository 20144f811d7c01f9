from httpx import AsyncClient, ASGITransport

from chaussettes.main import app
from chaussettes.concerts.services import ConcertService


async def test_unexpected_error_returns_internal_envelope(client, monkeypatch):
    async def broken(self, slug):
        raise RuntimeError("boom")

    monkeypatch.setattr(ConcertService, "public_view", broken)
    # Starlette relance l'exception après avoir répondu : on ne la propage pas au test
    async with AsyncClient(transport=ASGITransport(app=app, raise_app_exceptions=False),
                           base_url="http://testserver") as quiet_client:
        response = await quiet_client.get("/api/concerts/public/whatever")

    assert response.status_code == 500
    assert response.json() == {"error": {"message": "Erreur interne du serveur", "code": "INTERNAL_ERROR"}}
    assert "boom" not in response.text


async def test_validation_error_envelope(client):
    response = await client.post("/api/inscriptions/lookup", json={"email": "not-an-email"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
