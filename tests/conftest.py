# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pytest fixtures. Tests run against a throwaway SQLite database and a fake WhatsApp gateway."""

import os
import tempfile
from pathlib import Path

import pytest

# Environment must be set before eventreg_server.config is imported.
TEST_DB_PATH = Path(tempfile.gettempdir()) / f"eventreg_test_{os.getpid()}.db"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["MESSAGE_DELAY_SECONDS"] = "0"
os.environ.pop("MESSAGE_TOKEN", None)
os.environ.pop("MESSAGE_INSTANCE_ID", None)

from httpx import ASGITransport, AsyncClient  # noqa: E402

from eventreg_server.auth import require_admin  # noqa: E402
from eventreg_server.database import async_session_maker, engine  # noqa: E402
from eventreg_server.deps import get_gateway  # noqa: E402
from eventreg_server.main import app  # noqa: E402
from eventreg_server.models import Base, Registration  # noqa: E402


class FakeGateway:
    """Records sends; numbers in fail_phones are rejected, numbers in raise_phones raise."""

    def __init__(self):
        self.texts: list[tuple[str, str]] = []
        self.images: list[tuple[str, str, str | None]] = []
        self.fail_phones: set[str] = set()
        self.raise_phones: set[str] = set()

    def _outcome(self, phone: str) -> bool:
        if phone in self.raise_phones:
            raise RuntimeError("gateway exploded")
        return phone not in self.fail_phones

    async def send_text(self, phone: str, body: str) -> bool:
        self.texts.append((phone, body))
        return self._outcome(phone)

    async def send_image(self, phone: str, image_base64: str, caption: str | None = None) -> bool:
        self.images.append((phone, image_base64, caption))
        return self._outcome(phone)

    async def aclose(self) -> None:
        pass


@pytest.fixture(autouse=True)
async def fresh_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest.fixture
async def db():
    async with async_session_maker() as session:
        yield session


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
async def client(gateway):
    """App client with lifespan running, fake gateway, and admin auth bypassed."""
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[require_admin] = lambda: 1
    try:
        async with app.router.lifespan_context(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as ac:
                yield ac
            await app.state.dispatcher.drain()
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_registration(db):
    """Insert a registration directly (bypassing the rate-limited endpoint)."""
    counter = {"n": 0}

    async def _make(**fields) -> Registration:
        counter["n"] += 1
        data = {
            "name": f"Guest {counter['n']}",
            "phone_number": f"0790{counter['n']:07d}",
            "city": "بغداد",
        }
        data.update(fields)
        reg = Registration(**data)
        db.add(reg)
        await db.commit()
        await db.refresh(reg)
        return reg

    return _make
