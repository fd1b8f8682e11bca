# src/weekly_report/notion/client.py

"""
Notion REST adapters (httpx).

- NotionClient: thin JSON-over-HTTP wrapper; every failure -> ExternalCallError
- NotionTaskSource: TaskSource over the task database
- NotionDocumentStore: DocumentStore over the weekly report database
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Iterator, List, Optional, Sequence

import httpx

from ..errors import ExternalCallError
from ..report.blocks import Block, DocumentNode
from ..tasks.task_models import RawLine, TaskPage
from .codec import block_to_notion, line_from_notion, node_from_notion, page_title, task_from_page

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
MAX_CHILDREN_PER_REQUEST = 100

# Rate-limited reads are retried; writes never are.
_READ_RETRIES = 2
_DEFAULT_RETRY_AFTER = 1.0


def _error_detail(r: httpx.Response) -> str:
    """Extract a human-readable error from an HTTP response."""
    try:
        data = r.json()
        return str(data.get("message") or data.get("code") or data)
    except Exception:
        return r.text[:200] if r.text else f"HTTP {r.status_code}"


def _retry_after(r: httpx.Response) -> float:
    try:
        return max(0.0, float(r.headers.get("Retry-After", _DEFAULT_RETRY_AFTER)))
    except ValueError:
        return _DEFAULT_RETRY_AFTER


class NotionClient:
    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.notion.com/v1",
        notion_version: str = "2022-06-28",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not api_key or not api_key.strip():
            raise ValueError("Notion API key is not set. Set WEEKLY_NOTION_API_KEY in your .env.")
        self._http = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {api_key.strip()}",
                "Notion-Version": notion_version,
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        read: bool = False,
    ) -> Dict[str, Any]:
        attempts = 1 + (_READ_RETRIES if read else 0)
        for attempt in range(attempts):
            try:
                r = self._http.request(method, path, json=json, params=params)
            except httpx.HTTPError as e:
                raise ExternalCallError(f"Notion request failed: {e}", operation=operation) from e

            if r.status_code == 429 and attempt + 1 < attempts:
                delay = _retry_after(r)
                logger.info("Notion rate-limited op=%s, retrying in %.1fs", operation, delay)
                time.sleep(delay)
                continue

            if not r.is_success:
                raise ExternalCallError(
                    f"Notion error {r.status_code} {r.reason_phrase}: {_error_detail(r)}",
                    operation=operation,
                )
            logger.debug("Notion %s %s -> %s", method, path, r.status_code)
            return r.json() if r.content else {}

        raise ExternalCallError("Notion request kept being rate-limited.", operation=operation)

    def paginate(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        body: Optional[Dict[str, Any]] = None,
    ) -> Iterator[Dict[str, Any]]:
        """Yield every result object across all pages."""
        cursor: Optional[str] = None
        while True:
            if method == "GET":
                params: Dict[str, Any] = {"page_size": PAGE_SIZE}
                if cursor:
                    params["start_cursor"] = cursor
                data = self.request("GET", path, operation=operation, params=params, read=True)
            else:
                payload = dict(body or {})
                payload["page_size"] = PAGE_SIZE
                if cursor:
                    payload["start_cursor"] = cursor
                data = self.request(method, path, operation=operation, json=payload, read=True)

            yield from data.get("results") or []
            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                return

    def append_children(self, block_id: str, children: List[Dict[str, Any]], *, after: Optional[str]) -> None:
        """Append in chunks, each chunk anchored after the last block the previous one created."""
        anchor = after
        for start in range(0, len(children), MAX_CHILDREN_PER_REQUEST):
            chunk = children[start : start + MAX_CHILDREN_PER_REQUEST]
            body: Dict[str, Any] = {"children": chunk}
            if anchor:
                body["after"] = anchor
            data = self.request("PATCH", f"/blocks/{block_id}/children", operation="append_nodes", json=body)
            results = data.get("results") or []
            if anchor and results:
                anchor = str(results[-1].get("id") or anchor)


class NotionTaskSource:
    """TaskSource over the task database (one page per task)."""

    def __init__(self, client: NotionClient, database_id: str, *, status_property_type: str = "select") -> None:
        if not database_id:
            raise ValueError("Task database id is not set. Set WEEKLY_NOTION_DATABASE_ID in your .env.")
        self._client = client
        self._database_id = database_id
        self._status_type = status_property_type

    def query_tasks(self, statuses: Sequence[str], cursor: str | None = None) -> TaskPage:
        body: Dict[str, Any] = {
            "filter": {
                "or": [
                    {"property": "Status", self._status_type: {"equals": s}}
                    for s in statuses
                ]
            },
            "page_size": PAGE_SIZE,
        }
        if cursor:
            body["start_cursor"] = cursor
        data = self._client.request(
            "POST",
            f"/databases/{self._database_id}/query",
            operation="query_tasks",
            json=body,
            read=True,
        )
        records = [task_from_page(p) for p in data.get("results") or []]
        next_cursor = data.get("next_cursor") if data.get("has_more") else None
        return TaskPage(records=records, next_cursor=next_cursor)

    def fetch_content(self, task_id: str) -> list[RawLine]:
        return [
            line_from_notion(b)
            for b in self._client.paginate("GET", f"/blocks/{task_id}/children", operation="fetch_content")
        ]


class NotionDocumentStore:
    """DocumentStore over the report database: one page per period, titled with the period key."""

    def __init__(self, client: NotionClient, database_id: str) -> None:
        if not database_id:
            raise ValueError("Report database id is not set. Set WEEKLY_NOTION_REPORT_DATABASE_ID in your .env.")
        self._client = client
        self._database_id = database_id
        self._title_property: Optional[str] = None

    def _title_property_name(self) -> str:
        if self._title_property is None:
            info = self._client.request(
                "GET", f"/databases/{self._database_id}", operation="retrieve_database", read=True
            )
            name = "Name"
            for key, prop in (info.get("properties") or {}).items():
                if isinstance(prop, dict) and prop.get("type") == "title":
                    name = key
                    break
            self._title_property = name
        return self._title_property

    def find_document(self, period_key: str) -> str | None:
        # Linear scan over page titles; the database is small (one page per week).
        for page in self._client.paginate(
            "POST", f"/databases/{self._database_id}/query", operation="find_document"
        ):
            if page_title(page) == period_key:
                return str(page.get("id"))
        return None

    def create_document(self, period_key: str, children: list[Block]) -> str:
        payload = [block_to_notion(b) for b in children]
        first, rest = payload[:MAX_CHILDREN_PER_REQUEST], payload[MAX_CHILDREN_PER_REQUEST:]
        page = self._client.request(
            "POST",
            "/pages",
            operation="create_document",
            json={
                "parent": {"database_id": self._database_id},
                "properties": {
                    self._title_property_name(): {"title": [{"text": {"content": period_key}}]},
                },
                "children": first,
            },
        )
        page_id = str(page.get("id") or "")
        if not page_id:
            raise ExternalCallError("Notion returned no page id.", operation="create_document")
        if rest:
            self._client.append_children(page_id, rest, after=None)
        return page_id

    def list_top_level_nodes(self, document_id: str) -> list[DocumentNode]:
        return [
            node_from_notion(b)
            for b in self._client.paginate("GET", f"/blocks/{document_id}/children", operation="list_top_level_nodes")
        ]

    def delete_node(self, node_id: str) -> None:
        self._client.request("DELETE", f"/blocks/{node_id}", operation="delete_node")

    def append_nodes(self, document_id: str, anchor_node_id: str | None, nodes: list[Block]) -> None:
        self._client.append_children(document_id, [block_to_notion(b) for b in nodes], after=anchor_node_id)
