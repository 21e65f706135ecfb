import pytest
from httpx import AsyncClient

from app.models.user import User
from tests.integration.conftest import act_as


async def _create(client: AsyncClient, headers: dict, **overrides) -> dict:
    body = {"name": "Landing page", "template": "Build a landing page for {product}", "category": "website"}
    body.update(overrides)
    response = await client.post("/api/prompt-templates", json=body, headers=headers)
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_create_and_list_own_templates(client: AsyncClient, auth_headers: dict, mock_user: User):
    first = await _create(client, auth_headers)
    second = await _create(client, auth_headers, name="Bot persona", category="bot")

    assert first["user_id"] == str(mock_user.id)
    assert first["is_public"] is False

    listed = (await client.get("/api/prompt-templates", headers=auth_headers)).json()
    assert [t["id"] for t in listed] == [first["id"], second["id"]]


@pytest.mark.asyncio
async def test_public_list_shows_shared_templates_only(
    client: AsyncClient, auth_headers: dict, other_user: User
):
    shared = await _create(client, auth_headers, is_public=True)
    await _create(client, auth_headers, name="Private")

    act_as(other_user)
    public = (await client.get("/api/prompt-templates/public", headers=auth_headers)).json()
    assert [t["id"] for t in public] == [shared["id"]]
    assert (await client.get("/api/prompt-templates", headers=auth_headers)).json() == []


@pytest.mark.asyncio
async def test_get_template_visibility(
    client: AsyncClient, auth_headers: dict, other_user: User
):
    shared = await _create(client, auth_headers, is_public=True)
    private = await _create(client, auth_headers, name="Private")

    assert (await client.get(f"/api/prompt-templates/{private['id']}", headers=auth_headers)).status_code == 200

    act_as(other_user)
    assert (await client.get(f"/api/prompt-templates/{shared['id']}", headers=auth_headers)).status_code == 200
    assert (await client.get(f"/api/prompt-templates/{private['id']}", headers=auth_headers)).status_code == 404


@pytest.mark.asyncio
async def test_update_and_delete_template(client: AsyncClient, auth_headers: dict):
    template = await _create(client, auth_headers)

    response = await client.patch(
        f"/api/prompt-templates/{template['id']}",
        json={"template": "Build a pricing page", "category": None, "name": None},
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["template"] == "Build a pricing page"
    assert data["category"] is None
    assert data["name"] == "Landing page"

    response = await client.delete(f"/api/prompt-templates/{template['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert (await client.get("/api/prompt-templates", headers=auth_headers)).json() == []


@pytest.mark.asyncio
async def test_others_cannot_change_public_template(
    client: AsyncClient, auth_headers: dict, other_user: User
):
    shared = await _create(client, auth_headers, is_public=True)

    act_as(other_user)
    response = await client.patch(
        f"/api/prompt-templates/{shared['id']}", json={"name": "Mine now"}, headers=auth_headers
    )
    assert response.status_code == 404
    response = await client.delete(f"/api/prompt-templates/{shared['id']}", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_blank_template_rejected(client: AsyncClient, auth_headers: dict):
    response = await client.post(
        "/api/prompt-templates", json={"name": "Empty", "template": ""}, headers=auth_headers
    )
    assert response.status_code == 422
