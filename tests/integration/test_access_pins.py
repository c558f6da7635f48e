"""Integration tests: access PIN pool and verification."""

import pytest
from httpx import AsyncClient


async def _generate(client: AsyncClient, api_base: str, headers: dict, count: int) -> list:
    resp = await client.post(f"{api_base}/admin/access-pins", headers=headers, json={"count": count})
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["pins"]


async def _verify(client: AsyncClient, api_base: str, lga_code: str, school_code: str, pin: str):
    return await client.post(
        f"{api_base}/auth/access/verify",
        json={"lga_code": lga_code, "school_code": school_code, "access_pin": pin},
    )


async def _find_pin(client: AsyncClient, api_base: str, headers: dict, pin_id: str) -> dict:
    resp = await client.get(f"{api_base}/admin/access-pins", headers=headers)
    assert resp.status_code == 200
    return next(p for p in resp.json()["data"] if p["id"] == pin_id)


async def test_generate_pins(async_client: AsyncClient, api_base: str, admin_headers: dict):
    resp = await async_client.post(
        f"{api_base}/admin/access-pins", headers=admin_headers, json={"count": 5}
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["requested"] == 5
    assert data["count"] == 5
    assert data["shortfall"] == 0

    pins = [p["pin"] for p in data["pins"]]
    assert len(set(pins)) == 5
    for pin in data["pins"]:
        assert len(pin["pin"]) == 6
        assert pin["pin"][0] != "0"
        assert pin["is_active"] is True
        assert pin["usage_count"] == 0
        assert pin["owner_lga_code"] is None


@pytest.mark.parametrize("count", [0, 1001])
async def test_generate_pins_rejects_out_of_range_count(
    async_client: AsyncClient, api_base: str, admin_headers: dict, count: int
):
    resp = await async_client.post(
        f"{api_base}/admin/access-pins", headers=admin_headers, json={"count": count}
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["code"] == "INVALID_COUNT"


async def test_pin_admin_requires_admin_token(
    async_client: AsyncClient, api_base: str, registered_school: dict
):
    resp = await async_client.get(f"{api_base}/admin/access-pins")
    assert resp.status_code in (401, 403)

    resp = await async_client.get(
        f"{api_base}/admin/access-pins", headers=registered_school["headers"]
    )
    assert resp.status_code == 403


async def test_admin_login_rejects_wrong_password(async_client: AsyncClient, api_base: str):
    resp = await async_client.post(
        f"{api_base}/auth/admin/login", json={"username": "admin", "password": "wrong"}
    )
    assert resp.status_code == 401


async def test_first_school_claims_pin(async_client: AsyncClient, api_base: str, admin_headers: dict):
    pin = (await _generate(async_client, api_base, admin_headers, 1))[0]

    resp = await _verify(async_client, api_base, "3", "45", pin["pin"])
    assert resp.status_code == 200, resp.text
    school = resp.json()["data"]["school"]
    assert school["school_name"] == "Holy Trinity Grammar School"
    assert school["is_registered"] is False

    stored = await _find_pin(async_client, api_base, admin_headers, pin["id"])
    assert stored["owner_lga_code"] == "3"
    assert stored["owner_school_code"] == "45"
    assert stored["owner_school_name"] == "Holy Trinity Grammar School"
    assert stored["claimed_at"] is not None
    assert stored["usage_count"] == 1


async def test_owner_reuse_increments_usage(async_client: AsyncClient, api_base: str, admin_headers: dict):
    pin = (await _generate(async_client, api_base, admin_headers, 1))[0]

    assert (await _verify(async_client, api_base, "3", "45", pin["pin"])).status_code == 200
    # Padded codes identify the same school
    assert (await _verify(async_client, api_base, "03", "045", pin["pin"])).status_code == 200

    stored = await _find_pin(async_client, api_base, admin_headers, pin["id"])
    assert stored["usage_count"] == 2


async def test_claimed_pin_rejects_other_school(
    async_client: AsyncClient, api_base: str, admin_headers: dict
):
    pin = (await _generate(async_client, api_base, admin_headers, 1))[0]
    assert (await _verify(async_client, api_base, "3", "45", pin["pin"])).status_code == 200

    resp = await _verify(async_client, api_base, "3", "46", pin["pin"])
    assert resp.status_code == 403

    stored = await _find_pin(async_client, api_base, admin_headers, pin["id"])
    assert stored["owner_school_code"] == "45"
    assert stored["usage_count"] == 1


async def test_verify_rejects_unknown_school(async_client: AsyncClient, api_base: str, admin_headers: dict):
    pin = (await _generate(async_client, api_base, admin_headers, 1))[0]
    resp = await _verify(async_client, api_base, "99", "999", pin["pin"])
    assert resp.status_code == 404


@pytest.mark.parametrize("bad_pin", ["000000", "12345", "abcdef"])
async def test_verify_rejects_invalid_pin(async_client: AsyncClient, api_base: str, bad_pin: str):
    resp = await _verify(async_client, api_base, "3", "45", bad_pin)
    assert resp.status_code == 401


async def test_deactivated_pin_cannot_be_used(
    async_client: AsyncClient, api_base: str, admin_headers: dict
):
    pin = (await _generate(async_client, api_base, admin_headers, 1))[0]

    resp = await async_client.delete(f"{api_base}/admin/access-pins/{pin['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["is_active"] is False
    assert (await _verify(async_client, api_base, "3", "45", pin["pin"])).status_code == 401

    active = await async_client.get(
        f"{api_base}/admin/access-pins", headers=admin_headers, params={"activeOnly": "true"}
    )
    assert pin["id"] not in [p["id"] for p in active.json()["data"]]

    resp = await async_client.patch(f"{api_base}/admin/access-pins/{pin['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["is_active"] is True
    assert (await _verify(async_client, api_base, "3", "45", pin["pin"])).status_code == 200


async def test_unknown_pin_id_is_404(async_client: AsyncClient, api_base: str, admin_headers: dict):
    resp = await async_client.delete(
        f"{api_base}/admin/access-pins/00000000-0000-0000-0000-000000000000", headers=admin_headers
    )
    assert resp.status_code == 404


async def test_pin_token_before_signup_cannot_register(
    async_client: AsyncClient, api_base: str, admin_headers: dict
):
    pin = (await _generate(async_client, api_base, admin_headers, 1))[0]
    resp = await _verify(async_client, api_base, "12", "7", pin["pin"])
    token = resp.json()["data"]["access_token"]

    resp = await async_client.get(
        f"{api_base}/school/registrations", headers={"Authorization": f"Bearer {token}"}
    )
    assert resp.status_code == 403


async def test_pin_token_after_signup_carries_school(
    async_client: AsyncClient, api_base: str, admin_headers: dict, registered_school: dict
):
    pin = (await _generate(async_client, api_base, admin_headers, 1))[0]
    resp = await _verify(async_client, api_base, "3", "45", pin["pin"])
    data = resp.json()["data"]
    assert data["school"]["id"] == registered_school["school"]["id"]

    resp = await async_client.get(
        f"{api_base}/school/registrations",
        headers={"Authorization": f"Bearer {data['access_token']}"},
    )
    assert resp.status_code == 200
    assert resp.json()["data"] == []
