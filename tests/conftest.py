"""
Test configuration for pytest.
"""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from isovault.core.config import Settings
from isovault.infra.crypto.pan_cipher import PanCipher
from isovault.infra.db.repositories.iso_message_repository import IsoMessageRepository
from isovault.infra.db.session import build_engine, build_session_factory, init_db
from isovault.main import create_app

TEST_KEY = "0123456789abcdef0123456789abcdef"
ADMIN_TOKEN = "admin-token-reveal"
SERVICE_TOKEN = "service-token-masked"

SAMPLE_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<isomsg direction="incoming">
  <header>0200</header>
  <field id="0" value="0200"/>
  <field id="2" value="4000510010065678"/>
  <field id="3" value="000000"/>
  <field id="4" value="000000001500"/>
  <field id="12" value="153045"/>
  <field id="13" value="1124"/>
  <field id="37" value="123456789012"/>
  <field id="39" value="00"/>
  <field id="41" value="TERM0001"/>
  <field id="49" value="840"/>
</isomsg>
"""


def build_xml(fields: dict, header: str | None = None) -> bytes:
    """Build an <isomsg> document from an id -> value mapping."""
    parts = ['<isomsg direction="incoming">']
    if header is not None:
        parts.append(f"<header>{header}</header>")
    for field_id, value in fields.items():
        parts.append(f'<field id="{field_id}" value="{value}"/>')
    parts.append("</isomsg>")
    return "".join(parts).encode("utf-8")


@pytest.fixture
def sample_fields():
    """Valid field set matching SAMPLE_XML."""
    return {
        "0": "0200",
        "2": "4000510010065678",
        "3": "000000",
        "4": "000000001500",
        "12": "153045",
        "13": "1124",
        "37": "123456789012",
        "39": "00",
        "41": "TERM0001",
        "49": "840",
    }


@pytest.fixture
def sample_xml():
    return SAMPLE_XML


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        PAN_ENCRYPTION_KEY=TEST_KEY,
        RATE_LIMIT_ENABLED=False,
        API_TOKENS={
            ADMIN_TOKEN: {"user_id": 1, "username": "admin", "reveal_pan": True},
            SERVICE_TOKEN: {"user_id": 2, "username": "service", "reveal_pan": False},
        },
    )


@pytest.fixture
def cipher():
    return PanCipher(TEST_KEY.encode("utf-8"))


@pytest.fixture
def gcm_cipher():
    return PanCipher(TEST_KEY.encode("utf-8"), mode="gcm")


@pytest_asyncio.fixture
async def engine(test_settings):
    engine = build_engine(test_settings)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    async with build_session_factory(engine)() as session:
        yield session


@pytest.fixture
def repository(db_session):
    return IsoMessageRepository(db_session)


@pytest_asyncio.fixture
async def app(test_settings):
    app = create_app(test_settings)
    # ASGITransport no dispara el lifespan
    await init_db(app.state.engine)
    yield app
    await app.state.engine.dispose()


@pytest_asyncio.fixture
async def async_client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def service_headers():
    return {"Authorization": f"Bearer {SERVICE_TOKEN}"}
