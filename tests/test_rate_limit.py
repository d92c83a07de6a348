import pytest

from src.config import Config
from src.utils.limiter import limiter


@pytest.fixture
def limits_on(monkeypatch):
    monkeypatch.setattr(limiter, "enabled", True)
    limiter.reset()
    yield limiter
    limiter.reset()


async def test_write_routes_use_the_write_limit(client, seed, limits_on):
    assert Config.RATE_LIMIT_WRITE == "20/minute"
    closing = await seed.closing(await seed.smd(), await seed.customer())
    url = f"/api/smd-closings/{closing.smd_closing_id}/smd-payment"

    for _ in range(20):
        response = await client.post(url, json={"amount": "10"})
        assert response.status_code == 200

    response = await client.post(url, json={"amount": "10"})

    assert response.status_code == 429


async def test_read_routes_are_not_limited_by_the_write_limit(client, limits_on):
    for _ in range(25):
        response = await client.get("/api/smd-closings")
        assert response.status_code == 200
