from xml.etree import ElementTree

import pytest
from httpx import AsyncClient

from app.models.user import User
from tests.integration.conftest import act_as


@pytest.mark.asyncio
async def test_robots_endpoint(client: AsyncClient, auth_headers: dict):
    response = await client.post(
        "/api/seo/robots",
        json={"disallow_paths": ["/admin"], "domain": "example.com"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == (
        "User-agent: *\nDisallow: /admin\n\nSitemap: https://example.com/sitemap.xml\n"
    )


@pytest.mark.asyncio
async def test_sitemap_endpoint(client: AsyncClient, auth_headers: dict):
    response = await client.post(
        "/api/seo/sitemap",
        json={"domain": "example.com", "pages": ["/", "/blog"]},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/xml")
    root = ElementTree.fromstring(response.content)
    assert len(root) == 2


@pytest.mark.asyncio
async def test_sitemap_requires_domain(client: AsyncClient, auth_headers: dict):
    response = await client.post("/api/seo/sitemap", json={"domain": ""}, headers=auth_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_actions_record_events(client: AsyncClient, auth_headers: dict):
    project = (await client.post(
        "/api/projects", json={"name": "Tracked", "type": "game"}, headers=auth_headers
    )).json()

    response = await client.post(
        "/api/analytics/events",
        json={"event_type": "preview_opened", "project_id": project["id"], "event_data": {"tab": "code"}},
        headers=auth_headers,
    )
    assert response.status_code == 201
    assert response.json()["event_data"] == {"tab": "code"}

    user_events = (await client.get("/api/analytics", headers=auth_headers)).json()
    assert [e["event_type"] for e in user_events] == ["project_created", "preview_opened"]

    project_events = (await client.get(f"/api/projects/{project['id']}/analytics", headers=auth_headers)).json()
    assert len(project_events) == 2


@pytest.mark.asyncio
async def test_events_on_foreign_project_rejected(
    client: AsyncClient, auth_headers: dict, other_user: User
):
    project = (await client.post(
        "/api/projects", json={"name": "Mine", "type": "ai"}, headers=auth_headers
    )).json()

    act_as(other_user)
    response = await client.post(
        "/api/analytics/events",
        json={"event_type": "snoop", "project_id": project["id"]},
        headers=auth_headers,
    )
    assert response.status_code == 404
    response = await client.get(f"/api/projects/{project['id']}/analytics", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_robots_endpoint_rejects_injected_directives(client: AsyncClient, auth_headers: dict):
    response = await client.post(
        "/api/seo/robots",
        json={"disallow_paths": ["/admin\nAllow: /admin"]},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "invalid_input"


@pytest.mark.asyncio
async def test_user_events_legacy_path(client: AsyncClient, auth_headers: dict):
    await client.post("/api/analytics/events", json={"event_type": "page_view"}, headers=auth_headers)

    response = await client.get("/api/analytics/user", headers=auth_headers)

    assert response.status_code == 200
    assert [e["event_type"] for e in response.json()] == ["page_view"]
