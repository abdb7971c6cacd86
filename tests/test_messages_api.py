"""
End-to-end tests for the /api/v1/messages endpoints.
"""
import pytest
from httpx import ASGITransport, AsyncClient

from isovault.infra.db.session import init_db
from isovault.main import create_app
from tests.conftest import SERVICE_TOKEN, build_xml

MESSAGES_URL = "/api/v1/messages"


async def upload(client: AsyncClient, headers: dict, content: bytes):
    return await client.post(
        MESSAGES_URL,
        headers=headers,
        files={"xml_file": ("message.xml", content, "application/xml")},
    )


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_missing_token(self, async_client: AsyncClient):
        response = await async_client.get(MESSAGES_URL)
        assert response.status_code == 401
        assert response.json()["detail"] == "Bearer token required"

    @pytest.mark.asyncio
    async def test_invalid_token(self, async_client: AsyncClient):
        response = await async_client.get(
            MESSAGES_URL, headers={"Authorization": "Bearer nope"}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid token"

    @pytest.mark.asyncio
    async def test_bare_token_accepted(self, async_client: AsyncClient):
        response = await async_client.get(MESSAGES_URL, headers={"Authorization": SERVICE_TOKEN})
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_other_scheme_rejected(self, async_client: AsyncClient):
        response = await async_client.get(
            MESSAGES_URL, headers={"Authorization": f"Basic {SERVICE_TOKEN}"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_health_is_public(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json()["components"]["database"]["status"] == "operational"


class TestUpload:
    @pytest.mark.asyncio
    async def test_upload_sample(self, async_client: AsyncClient, admin_headers, sample_xml):
        response = await upload(async_client, admin_headers, sample_xml)

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Message created successfully."
        assert isinstance(body["id"], int)

    @pytest.mark.asyncio
    async def test_missing_field(self, async_client: AsyncClient, admin_headers, sample_fields):
        del sample_fields["41"]
        response = await upload(async_client, admin_headers, build_xml(sample_fields))

        assert response.status_code == 400
        assert response.json() == {
            "message": "XML parsing error: Missing required field: 41",
            "field": "41",
        }

    @pytest.mark.asyncio
    async def test_malformed_xml(self, async_client: AsyncClient, admin_headers):
        response = await upload(async_client, admin_headers, b"<isomsg><field")
        assert response.status_code == 400
        assert response.json()["message"] == "XML parsing error: invalid XML"

    @pytest.mark.asyncio
    async def test_no_file(self, async_client: AsyncClient, admin_headers):
        response = await async_client.post(MESSAGES_URL, headers=admin_headers)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_file_too_large(self, app, async_client: AsyncClient, admin_headers, sample_xml):
        app.state.settings = app.state.settings.model_copy(update={"MAX_UPLOAD_BYTES": 64})
        response = await upload(async_client, admin_headers, sample_xml)
        assert response.status_code == 413

    @pytest.mark.asyncio
    async def test_put_not_allowed(self, async_client: AsyncClient, admin_headers):
        response = await async_client.put(f"{MESSAGES_URL}/1", headers=admin_headers)
        assert response.status_code == 405


class TestReadAndDelete:
    @pytest.mark.asyncio
    async def test_end_to_end_sample(self, async_client: AsyncClient, admin_headers, sample_xml):
        message_id = (await upload(async_client, admin_headers, sample_xml)).json()["id"]

        listing = await async_client.get(MESSAGES_URL, headers=admin_headers)
        assert listing.status_code == 200
        body = listing.json()
        assert body["pagination"] == {"page": 1, "limit": 10, "total": 1, "total_pages": 1}
        assert body["data"][0]["id"] == message_id
        assert body["data"][0]["pan"] == "4000****5678"
        assert "pan_full" not in body["data"][0]

        detail = await async_client.get(f"{MESSAGES_URL}/{message_id}", headers=admin_headers)
        assert detail.status_code == 200
        record = detail.json()
        assert record["pan"] == "4000****5678"
        assert record["pan_full"] == "4000510010065678"
        assert record["amount"] == 1500
        assert record["transaction_date"] == "1124"
        assert record["currency"] == "840"

    @pytest.mark.asyncio
    async def test_pan_hidden_without_reveal_grant(
        self, async_client: AsyncClient, admin_headers, service_headers, sample_xml
    ):
        message_id = (await upload(async_client, admin_headers, sample_xml)).json()["id"]

        detail = await async_client.get(f"{MESSAGES_URL}/{message_id}", headers=service_headers)
        assert detail.status_code == 200
        assert detail.json()["pan"] == "4000****5678"
        assert "pan_full" not in detail.json()

    @pytest.mark.asyncio
    async def test_pagination_query(self, async_client: AsyncClient, admin_headers, sample_xml):
        for _ in range(3):
            await upload(async_client, admin_headers, sample_xml)

        response = await async_client.get(
            MESSAGES_URL, headers=admin_headers, params={"page": 2, "limit": 2}
        )
        body = response.json()
        assert len(body["data"]) == 1
        assert body["pagination"] == {"page": 2, "limit": 2, "total": 3, "total_pages": 2}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("params", [{"page": 0}, {"limit": 0}, {"limit": 101}])
    async def test_invalid_pagination(self, async_client: AsyncClient, admin_headers, params):
        response = await async_client.get(MESSAGES_URL, headers=admin_headers, params=params)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_get_unknown(self, async_client: AsyncClient, admin_headers):
        response = await async_client.get(f"{MESSAGES_URL}/999", headers=admin_headers)
        assert response.status_code == 404
        assert response.json() == {"message": "Message not found."}

    @pytest.mark.asyncio
    async def test_delete_twice(self, async_client: AsyncClient, admin_headers, sample_xml):
        message_id = (await upload(async_client, admin_headers, sample_xml)).json()["id"]

        first = await async_client.delete(f"{MESSAGES_URL}/{message_id}", headers=admin_headers)
        assert first.status_code == 200
        assert first.json() == {"message": "Message deleted successfully."}

        second = await async_client.delete(f"{MESSAGES_URL}/{message_id}", headers=admin_headers)
        assert second.status_code == 404

    @pytest.mark.asyncio
    async def test_corrupted_pan_returns_integrity_error(
        self, app, async_client: AsyncClient, admin_headers, sample_xml
    ):
        from isovault.infra.db.models.iso_message import IsoMessage

        message_id = (await upload(async_client, admin_headers, sample_xml)).json()["id"]
        async with app.state.session_factory() as session:
            row = await session.get(IsoMessage, message_id)
            row.pan = "Y29ycnVwdGVk"
            await session.commit()

        response = await async_client.get(f"{MESSAGES_URL}/{message_id}", headers=admin_headers)
        assert response.status_code == 500
        assert response.json()["error"] == "pan_integrity_error"


class TestRateLimit:
    """Upload throttling follows the settings handed to create_app."""

    @pytest.mark.asyncio
    async def test_injected_limit_applies(self, test_settings, admin_headers, sample_xml):
        limited = create_app(test_settings.model_copy(update={"RATE_LIMIT": "1/minute", "RATE_LIMIT_ENABLED": True}))
        unlimited = create_app(test_settings)
        await init_db(limited.state.engine)
        await init_db(unlimited.state.engine)

        try:
            async with AsyncClient(transport=ASGITransport(app=limited), base_url="http://testserver") as client:
                codes = [(await upload(client, admin_headers, sample_xml)).status_code for _ in range(3)]
            assert codes == [201, 429, 429]

            # el limiter de una app no afecta a la otra
            async with AsyncClient(transport=ASGITransport(app=unlimited), base_url="http://testserver") as client:
                codes = [(await upload(client, admin_headers, sample_xml)).status_code for _ in range(3)]
            assert codes == [201, 201, 201]
        finally:
            await limited.state.engine.dispose()
            await unlimited.state.engine.dispose()
