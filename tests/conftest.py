import copy
import hmac
import hashlib
import pytest
from unittest.mock import AsyncMock, MagicMock
from app.core.config import Settings
from app.core.processor import PaymentProcessor
from app.core.supabase import DocumentStore

KEY_SECRET = "s3cr3t"
WEBHOOK_SECRET = "whsec_test"


class InMemoryDocumentStore(DocumentStore):
    """Document store double with the same merge semantics as the real one."""

    def __init__(self, fail: bool = False):
        self.docs = {}
        self.writes = []
        self.fail = fail

    async def set(self, collection, doc_id, fields, merge=False):
        if self.fail:
            raise RuntimeError("store unavailable")
        self.writes.append((collection, doc_id, copy.deepcopy(fields), merge))
        key = (collection, doc_id)
        if merge:
            self.docs.setdefault(key, {}).update(copy.deepcopy(fields))
        else:
            self.docs[key] = copy.deepcopy(fields)


def sign(secret, message) -> str:
    if isinstance(message, str):
        message = message.encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def make_settings(**overrides) -> Settings:
    values = dict(
        APP_ENV="test",
        RZP_KEY_ID="rzp_test_key",
        RZP_KEY_SECRET=KEY_SECRET,
        RZP_WEBHOOK_SECRET=WEBHOOK_SECRET,
        DEFAULT_PAYMENT_CAPTURE=1,
        FRONTEND_ORIGIN="http://localhost:5173",
        SUPABASE_CREDENTIALS_FILE=None,
        SUPABASE_CREDENTIALS_JSON=None,
        SUPABASE_URL="",
        SUPABASE_KEY="",
        SUPABASE_SERVICE_ROLE_KEY=None,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def processor():
    mock = MagicMock(spec=PaymentProcessor)
    mock.create_order = AsyncMock(side_effect=lambda **kw: {
        "id": "order_ABC",
        "entity": "order",
        "amount": kw["amount"],
        "currency": kw["currency"],
        "receipt": kw["receipt"],
        "status": "created",
        "notes": kw["notes"],
    })
    mock.capture_payment = AsyncMock(return_value={"id": "pay_XYZ", "status": "captured"})
    return mock
