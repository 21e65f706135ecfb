import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.main import app
from app.models.user import User
from app.services.generation import GenerationGateway, ProviderStrategy, get_generation_gateway
from app.services.user_api_keys import store_api_key
from tests.integration.conftest import act_as


class NamedStrategy(ProviderStrategy):
    def __init__(self, name):
        super().__init__(timeout=1.0)
        self.name = name
        self.calls = 0

    async def _call(self, messages, options, api_key):
        self.calls += 1
        return f"reply from {self.name} to {len(messages)} messages", self.name


@pytest.fixture
def strategies():
    openai, gemini = NamedStrategy("openai"), NamedStrategy("gemini")
    app.dependency_overrides[get_generation_gateway] = lambda: GenerationGateway([openai, gemini])
    return openai, gemini


@pytest.mark.asyncio
async def test_create_list_and_update_conversation(client: AsyncClient, auth_headers: dict):
    response = await client.post(
        "/api/conversations",
        json={"messages": [{"role": "user", "content": "hi"}], "ai_provider": "gemini"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    conversation = response.json()
    assert conversation["ai_provider"] == "gemini"
    assert conversation["messages"][0]["content"] == "hi"

    listed = (await client.get("/api/conversations", headers=auth_headers)).json()
    assert [c["id"] for c in listed] == [conversation["id"]]

    response = await client.patch(
        f"/api/conversations/{conversation['id']}",
        json={"ai_provider": "cohere", "messages": []},
        headers=auth_headers,
    )
    assert response.json()["ai_provider"] == "cohere"
    assert response.json()["messages"] == []


@pytest.mark.asyncio
async def test_send_message_prefers_conversation_provider(
    client: AsyncClient, auth_headers: dict, mock_user: User, db_session: AsyncSession, strategies
):
    openai, gemini = strategies
    await store_api_key(mock_user.id, "openai", "o", db_session)
    await store_api_key(mock_user.id, "gemini", "g", db_session)
    await db_session.commit()

    conversation = (await client.post(
        "/api/conversations", json={"ai_provider": "gemini"}, headers=auth_headers
    )).json()

    response = await client.post(
        f"/api/conversations/{conversation['id']}/messages",
        json={"content": "hello"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    messages = response.json()["messages"]
    assert [m["role"] for m in messages] == ["user", "assistant"]
    assert messages[1]["content"] == "reply from gemini to 1 messages"
    assert gemini.calls == 1
    assert openai.calls == 0


@pytest.mark.asyncio
async def test_send_message_falls_back_to_template(client: AsyncClient, auth_headers: dict, strategies):
    conversation = (await client.post("/api/conversations", json={}, headers=auth_headers)).json()

    response = await client.post(
        f"/api/conversations/{conversation['id']}/messages",
        json={"content": "make a snake game"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    reply = response.json()["messages"][-1]
    assert reply["role"] == "assistant"
    assert reply["content"].strip()


@pytest.mark.asyncio
async def test_strict_provider_without_key(client: AsyncClient, auth_headers: dict, strategies):
    conversation = (await client.post(
        "/api/conversations", json={"ai_provider": "openai"}, headers=auth_headers
    )).json()

    response = await client.post(
        f"/api/conversations/{conversation['id']}/messages",
        json={"content": "hello", "strict_provider": True},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "no_provider_available"
    stored = (await client.get(f"/api/conversations/{conversation['id']}", headers=auth_headers)).json()
    assert stored["messages"] == []


@pytest.mark.asyncio
async def test_conversations_are_private(client: AsyncClient, auth_headers: dict, other_user: User):
    conversation = (await client.post("/api/conversations", json={}, headers=auth_headers)).json()

    act_as(other_user)
    response = await client.get(f"/api/conversations/{conversation['id']}", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_conversations_filtered_by_project(client: AsyncClient, auth_headers: dict):
    project = (await client.post(
        "/api/projects", json={"name": "Chat target", "type": "ai"}, headers=auth_headers
    )).json()
    linked = (await client.post(
        "/api/conversations", json={"project_id": project["id"]}, headers=auth_headers
    )).json()
    await client.post("/api/conversations", json={}, headers=auth_headers)

    everything = (await client.get("/api/conversations", headers=auth_headers)).json()
    filtered = (await client.get(
        "/api/conversations", params={"project_id": project["id"]}, headers=auth_headers
    )).json()

    assert len(everything) == 2
    assert [c["id"] for c in filtered] == [linked["id"]]
