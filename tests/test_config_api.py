import pytest


@pytest.mark.anyio
async def test_config_status(client):
    resp = await client.get("/v1/config")
    assert resp.status_code == 200
    body = resp.json()
    assert body["catalogVersion"] == "v1"
    assert body["templateCount"] == 15
    assert body["scoringWeights"]["lensPreference"] == 20


@pytest.mark.anyio
async def test_config_reload_bumps_version(client):
    before = (await client.get("/v1/config")).json()["version"]
    resp = await client.post("/v1/config/reload")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["version"] == before + 1
