import os
from typing import Dict, Any, List, Optional
from supabase import create_client, Client
import logging

from clients.document_store import DocumentStore, generate_uuid
from utils.exceptions import StorageError

logger = logging.getLogger(__name__)

_supabase_client: Optional[Client] = None


def get_supabase(url: Optional[str] = None, key: Optional[str] = None) -> Client:
    global _supabase_client
    if _supabase_client is None:
        url = url or os.getenv("SUPABASE_URL")
        key = key or os.getenv("SUPABASE_KEY")
        if not url or not key:
            raise StorageError("SUPABASE_URL and SUPABASE_KEY must be set", error_code="STORAGE_NOT_CONFIGURED")
        _supabase_client = create_client(url, key)
    return _supabase_client


class SupabaseStore(DocumentStore):
    """
    DocumentStore over Supabase tables. Each collection is a table with a
    text "id" primary key; filters map to .eq() (or .is_() for None).
    """

    def __init__(self, client: Optional[Client] = None, url: Optional[str] = None, key: Optional[str] = None):
        self._client = client
        self._url = url
        self._key = key

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase(self._url, self._key)
        return self._client

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        try:
            response = self.client.table(collection).select("*").eq("id", doc_id).limit(1).execute()
        except Exception as e:
            logger.error(f"Error fetching {collection}/{doc_id}: {e}")
            raise StorageError(f"Failed to fetch {collection} record", context={"id": doc_id})
        return response.data[0] if response.data else None

    def insert(self, collection: str, data: Dict[str, Any]) -> str:
        record = {**data, "id": data.get("id") or generate_uuid()}
        try:
            response = self.client.table(collection).insert(record).execute()
        except Exception as e:
            logger.error(f"Error inserting into {collection}: {e}")
            raise StorageError(f"Failed to insert {collection} record")
        if not response.data or "id" not in response.data[0]:
            raise StorageError(f"Supabase insert into {collection} returned no id")
        return str(response.data[0]["id"])

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        try:
            self.client.table(collection).update(fields).eq("id", doc_id).execute()
        except Exception as e:
            logger.error(f"Error updating {collection}/{doc_id}: {e}")
            raise StorageError(f"Failed to update {collection} record", context={"id": doc_id})

    def delete(self, collection: str, doc_id: str) -> None:
        try:
            self.client.table(collection).delete().eq("id", doc_id).execute()
        except Exception as e:
            logger.error(f"Error deleting {collection}/{doc_id}: {e}")
            raise StorageError(f"Failed to delete {collection} record", context={"id": doc_id})

    def query(self, collection: str, **equals: Any) -> List[Dict[str, Any]]:
        try:
            request = self.client.table(collection).select("*")
            for field, value in equals.items():
                request = request.is_(field, "null") if value is None else request.eq(field, value)
            response = request.execute()
        except Exception as e:
            logger.error(f"Error querying {collection} with {equals}: {e}")
            raise StorageError(f"Failed to query {collection}")
        return response.data or []
