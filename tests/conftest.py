"""
Pytest configuration and shared fixtures for testing.
"""

import json
from types import SimpleNamespace

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import db.models  # noqa: F401  (registers the tables)
from api.dependencies import get_genai_client, get_http_client, get_session_registry
from db.database import get_session
from main import app
from services.history import SessionRegistry


REGISTRY_HOSTS = {
    "openfda": "api.fda.gov",
    "rxnorm": "rxnav.nlm.nih.gov",
    "dailymed": "dailymed.nlm.nih.gov",
    "pubchem": "pubchem.ncbi.nlm.nih.gov",
    "ema": "api.ema.europa.eu",
}


def json_response(payload, status_code=200):
    return httpx.Response(status_code, content=json.dumps(payload), headers={"content-type": "application/json"})


def registry_handler(responses, calls=None):
    """
    MockTransport handler answering registry requests by host.

    `responses` maps a registry key (see REGISTRY_HOSTS) to a JSON payload, an
    httpx.Response or an exception instance to raise. Unlisted hosts get a 404.
    """
    by_host = {REGISTRY_HOSTS.get(key, key): value for key, value in responses.items()}

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        answer = by_host.get(request.url.host)
        if answer is None:
            return httpx.Response(404, json={"error": "not found"})
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, httpx.Response):
            return answer
        return json_response(answer)

    return handler


def make_http(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def openfda_label():
    """Trimmed openFDA drug label response"""
    return {
        "results": [
            {
                "purpose": ["Pain reliever/fever reducer"],
                "active_ingredient": ["Acetaminophen 500 mg"],
                "adverse_reactions": ["Liver damage in overdose"],
                "openfda": {
                    "brand_name": ["Tylenol"],
                    "generic_name": ["ACETAMINOPHEN"],
                    "manufacturer_name": ["Kenvue Brands LLC"],
                    "dosage_form": ["TABLET"],
                },
            }
        ]
    }


@pytest.fixture
def api_client(engine):
    """
    TestClient with the database, outbound HTTP, model client and session
    registry replaced. Tests set `api_client.http_handler` / `api_client.genai`
    before calling routes.
    """

    def override_session():
        with Session(engine) as session:
            yield session

    client = TestClient(app)
    client.http_handler = registry_handler({})
    client.genai = None
    client.registry = SessionRegistry(limit=20)

    async def override_http():
        async with make_http(lambda request: client.http_handler(request)) as http:
            yield http

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_http_client] = override_http
    app.dependency_overrides[get_genai_client] = lambda: client.genai
    app.dependency_overrides[get_session_registry] = lambda: client.registry

    yield client

    app.dependency_overrides.clear()


class FakeModels:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def generate_content(self, model, config, contents):
        self.calls.append({"model": model, "config": config, "contents": contents})
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


def fake_genai(text=None, error=None):
    """Stand-in for google.genai.Client exposing only `aio.models.generate_content`."""
    return SimpleNamespace(aio=SimpleNamespace(models=FakeModels(text=text, error=error)))
