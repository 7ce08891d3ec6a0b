import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional
from pydantic import BaseModel
from supabase import create_async_client, AsyncClient
from app.core.config import Settings

logger = logging.getLogger(__name__)

DOCUMENTS_TABLE = "documents"
MERGE_FUNCTION = "merge_document"


class StoreCredentials(BaseModel):
    url: str
    key: str

    @classmethod
    def from_json(cls, payload: str) -> "StoreCredentials":
        return cls.model_validate(json.loads(payload))

    @classmethod
    def from_file(cls, path: str) -> "StoreCredentials":
        with open(Path(path).expanduser(), "r") as f:
            return cls.from_json(f.read())


def load_store_credentials(settings: Settings) -> Optional[StoreCredentials]:
    """
    Resolves document store credentials from, in order: a credentials file,
    an inline JSON payload, or SUPABASE_URL with the service role key
    (falling back to SUPABASE_KEY). Returns None when nothing is configured.
    """
    if settings.SUPABASE_CREDENTIALS_FILE:
        logger.info("Loading store credentials from SUPABASE_CREDENTIALS_FILE.")
        return StoreCredentials.from_file(settings.SUPABASE_CREDENTIALS_FILE)
    if settings.SUPABASE_CREDENTIALS_JSON:
        logger.info("Loading store credentials from SUPABASE_CREDENTIALS_JSON.")
        return StoreCredentials.from_json(settings.SUPABASE_CREDENTIALS_JSON)

    key = settings.SUPABASE_SERVICE_ROLE_KEY or settings.SUPABASE_KEY
    if settings.SUPABASE_URL and key:
        if not settings.SUPABASE_SERVICE_ROLE_KEY:
            logger.warning("SUPABASE_SERVICE_ROLE_KEY not found. Falling back to standard SUPABASE_KEY. RLS might block access.")
        return StoreCredentials(url=settings.SUPABASE_URL, key=key)
    return None


class DocumentStore(ABC):
    """
    Key-value document store: collection -> document id -> fields.

    `set` with merge=False replaces the whole document; with merge=True only
    the given top-level fields are written and everything else is kept.
    """

    enabled: bool = True

    @abstractmethod
    async def set(self, collection: str, doc_id: str, fields: Dict[str, Any], merge: bool = False) -> None:
        ...


class NullDocumentStore(DocumentStore):
    """Used when no store credentials are configured. Writes are skipped."""

    enabled = False

    async def set(self, collection: str, doc_id: str, fields: Dict[str, Any], merge: bool = False) -> None:
        logger.debug(f"Document store disabled; skipping write to {collection}/{doc_id}")


class SupabaseDocumentStore(DocumentStore):
    """
    Documents live in a single `documents` table keyed by (collection, id)
    with a jsonb `doc` column. Merges go through the `merge_document`
    function so `doc || fields` happens in one statement.
    """

    def __init__(self, credentials: StoreCredentials, client: Optional[AsyncClient] = None):
        self.credentials = credentials
        self.client = client

    async def get_client(self) -> AsyncClient:
        if self.client is None:
            self.client = await create_async_client(self.credentials.url, self.credentials.key)
        return self.client

    async def set(self, collection: str, doc_id: str, fields: Dict[str, Any], merge: bool = False) -> None:
        client = await self.get_client()
        if merge:
            await client.rpc(
                MERGE_FUNCTION,
                {"p_collection": collection, "p_id": doc_id, "p_fields": fields},
            ).execute()
        else:
            await client.table(DOCUMENTS_TABLE).upsert(
                {"collection": collection, "id": doc_id, "doc": fields},
                on_conflict="collection,id",
            ).execute()


def build_document_store(settings: Settings) -> DocumentStore:
    credentials = load_store_credentials(settings)
    if credentials is None:
        logger.warning("Document store not configured: set SUPABASE_CREDENTIALS_FILE, SUPABASE_CREDENTIALS_JSON or SUPABASE_URL. Persistence is disabled.")
        return NullDocumentStore()
    return SupabaseDocumentStore(credentials)
