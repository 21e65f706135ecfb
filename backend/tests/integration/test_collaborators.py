import pytest
from httpx import AsyncClient

from app.models.user import User
from tests.integration.conftest import act_as


async def _create_project(client: AsyncClient, headers: dict) -> dict:
    response = await client.post(
        "/api/projects", json={"name": "Team Site", "type": "website"}, headers=headers
    )
    assert response.status_code == 200
    return response.json()


async def _share(client: AsyncClient, headers: dict, project_id: str, email: str, role: str = "viewer"):
    return await client.post(
        f"/api/projects/{project_id}/collaborators",
        json={"email": email, "role": role},
        headers=headers,
    )


@pytest.mark.asyncio
async def test_owner_adds_and_lists_collaborators(
    client: AsyncClient, auth_headers: dict, other_user: User
):
    project = await _create_project(client, auth_headers)

    response = await _share(client, auth_headers, project["id"], other_user.email, "editor")
    assert response.status_code == 201
    assert response.json()["user_id"] == str(other_user.id)
    assert response.json()["role"] == "editor"

    listed = (await client.get(f"/api/projects/{project['id']}/collaborators", headers=auth_headers)).json()
    assert [c["user_id"] for c in listed] == [str(other_user.id)]

    act_as(other_user)
    listed = await client.get(f"/api/projects/{project['id']}/collaborators", headers=auth_headers)
    assert listed.status_code == 200
    assert len(listed.json()) == 1


@pytest.mark.asyncio
async def test_sharing_grants_read_access_to_private_project(
    client: AsyncClient, auth_headers: dict, mock_user: User, other_user: User
):
    project = await _create_project(client, auth_headers)

    act_as(other_user)
    assert (await client.get(f"/api/projects/{project['id']}", headers=auth_headers)).status_code == 404
    assert (await client.get(f"/api/projects/{project['id']}/collaborators", headers=auth_headers)).status_code == 404

    act_as(mock_user)
    await _share(client, auth_headers, project["id"], other_user.email)

    act_as(other_user)
    response = await client.get(f"/api/projects/{project['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Team Site"


@pytest.mark.asyncio
async def test_viewer_cannot_edit_but_editor_can(
    client: AsyncClient, auth_headers: dict, mock_user: User, other_user: User
):
    project = await _create_project(client, auth_headers)
    collaborator = (await _share(client, auth_headers, project["id"], other_user.email, "viewer")).json()

    act_as(other_user)
    response = await client.patch(f"/api/projects/{project['id']}", json={"name": "Hijacked"}, headers=auth_headers)
    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "read_only"

    act_as(mock_user)
    await client.delete(f"/api/projects/{project['id']}/collaborators/{collaborator['id']}", headers=auth_headers)
    await _share(client, auth_headers, project["id"], other_user.email, "editor")

    act_as(other_user)
    response = await client.patch(f"/api/projects/{project['id']}", json={"name": "Edited"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Edited"

    # Editing does not extend to deleting
    response = await client.delete(f"/api/projects/{project['id']}", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_only_owner_manages_collaborators(
    client: AsyncClient, auth_headers: dict, mock_user: User, other_user: User
):
    project = await _create_project(client, auth_headers)
    collaborator = (await _share(client, auth_headers, project["id"], other_user.email, "editor")).json()

    act_as(other_user)
    assert (await _share(client, auth_headers, project["id"], mock_user.email)).status_code == 404
    response = await client.delete(
        f"/api/projects/{project['id']}/collaborators/{collaborator['id']}", headers=auth_headers
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_remove_collaborator_revokes_access(
    client: AsyncClient, auth_headers: dict, other_user: User
):
    project = await _create_project(client, auth_headers)
    collaborator = (await _share(client, auth_headers, project["id"], other_user.email)).json()

    response = await client.delete(
        f"/api/projects/{project['id']}/collaborators/{collaborator['id']}", headers=auth_headers
    )
    assert response.status_code == 200
    assert (await client.get(f"/api/projects/{project['id']}/collaborators", headers=auth_headers)).json() == []

    act_as(other_user)
    assert (await client.get(f"/api/projects/{project['id']}", headers=auth_headers)).status_code == 404


@pytest.mark.asyncio
async def test_invalid_invitations(
    client: AsyncClient, auth_headers: dict, mock_user: User, other_user: User
):
    project = await _create_project(client, auth_headers)

    assert (await _share(client, auth_headers, project["id"], "nobody@example.com")).status_code == 404
    assert (await _share(client, auth_headers, project["id"], mock_user.email)).status_code == 400
    assert (await _share(client, auth_headers, project["id"], other_user.email, "owner")).status_code == 422

    assert (await _share(client, auth_headers, project["id"], other_user.email)).status_code == 201
    response = await _share(client, auth_headers, project["id"], other_user.email, "editor")
    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "already_collaborator"
