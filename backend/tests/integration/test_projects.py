import pytest
from httpx import AsyncClient

from app.models.user import User
from tests.integration.conftest import act_as

PROJECT = {
    "name": "Bakery Site",
    "type": "website",
    "description": "Landing page",
    "content": {"html": "<h1>Bread</h1>", "css": "h1{color:brown}", "js": ""},
}


@pytest.mark.asyncio
async def test_create_and_get_project(client: AsyncClient, auth_headers: dict, mock_user: User):
    response = await client.post("/api/projects", json=PROJECT, headers=auth_headers)

    assert response.status_code == 200
    project = response.json()
    assert project["name"] == "Bakery Site"
    assert project["owner_id"] == str(mock_user.id)
    assert project["is_public"] is False
    assert project["deploy_url"] is None

    response = await client.get(f"/api/projects/{project['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["content"]["html"] == "<h1>Bread</h1>"


@pytest.mark.asyncio
async def test_list_projects_is_owner_scoped(client: AsyncClient, auth_headers: dict, other_user: User):
    await client.post("/api/projects", json=PROJECT, headers=auth_headers)

    assert len((await client.get("/api/projects", headers=auth_headers)).json()) == 1

    act_as(other_user)
    assert (await client.get("/api/projects", headers=auth_headers)).json() == []


@pytest.mark.asyncio
async def test_invalid_project_type(client: AsyncClient, auth_headers: dict):
    response = await client.post("/api/projects", json={**PROJECT, "type": "spreadsheet"}, headers=auth_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_project(client: AsyncClient, auth_headers: dict):
    project = (await client.post("/api/projects", json=PROJECT, headers=auth_headers)).json()

    response = await client.patch(
        f"/api/projects/{project['id']}",
        json={"name": "Renamed", "description": None, "is_public": True},
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Renamed"
    assert data["description"] is None
    assert data["is_public"] is True
    assert data["content"] == PROJECT["content"]


@pytest.mark.asyncio
async def test_public_projects_are_readable_not_writable(
    client: AsyncClient, auth_headers: dict, other_user: User
):
    private = (await client.post("/api/projects", json=PROJECT, headers=auth_headers)).json()
    public = (await client.post("/api/projects", json={**PROJECT, "is_public": True}, headers=auth_headers)).json()

    act_as(other_user)
    assert (await client.get(f"/api/projects/{private['id']}", headers=auth_headers)).status_code == 404
    assert (await client.get(f"/api/projects/{public['id']}", headers=auth_headers)).status_code == 200
    response = await client.patch(f"/api/projects/{public['id']}", json={"name": "Mine"}, headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_project(client: AsyncClient, auth_headers: dict):
    project = (await client.post("/api/projects", json=PROJECT, headers=auth_headers)).json()

    response = await client.delete(f"/api/projects/{project['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert (await client.get(f"/api/projects/{project['id']}", headers=auth_headers)).status_code == 404
