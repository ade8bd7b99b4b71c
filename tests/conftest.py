from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from salesmail.main import create_app
from salesmail.models import GenerationRequest
from salesmail.services.history_service import HistoryStore
from salesmail.services.openai_service import CompletionClient
from tests.fakes import FakeFirestoreClient


@pytest.fixture
def valid_payload():
    return {
        "company": "Acme",
        "product": "WidgetPro",
        "target": "中小企業",
        "benefit": "コスト削減",
        "tone": "丁寧",
        "purpose": "初回提案",
    }


@pytest.fixture
def valid_request(valid_payload):
    return GenerationRequest(**valid_payload)


@pytest.fixture
def completion_client():
    client = Mock(spec=CompletionClient)
    client.complete.return_value = "件名: ご提案\n\n本文です。"
    return client


@pytest.fixture
def api_client(completion_client):
    with TestClient(create_app(completion_client=completion_client)) as client:
        yield client


@pytest.fixture
def firestore_client():
    return FakeFirestoreClient()


@pytest.fixture
def store(firestore_client):
    return HistoryStore(firestore_client)
