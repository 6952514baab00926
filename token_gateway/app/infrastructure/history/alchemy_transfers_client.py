from __future__ import annotations

import logging
from typing import Any

import httpx

from token_gateway.app.domain.errors import HistoryUnavailableError
from token_gateway.app.domain.models import Address
from token_gateway.app.domain.ports.out import TransferHistoryProvider

logger = logging.getLogger(__name__)

_DEFAULT_MAX_PAGES = 10
_MAX_COUNT_PER_PAGE = 1000


def _merge_key(raw: dict[str, Any]) -> str:
    return str(raw.get("uniqueId") or f"{raw.get('hash')}:{raw.get('category')}")


def _block_of(raw: dict[str, Any]) -> int:
    block = raw.get("blockNum")
    try:
        return int(block, 16) if isinstance(block, str) else int(block)
    except (TypeError, ValueError):
        # unparseable records are kept and rejected later by parse_transfer
        return -1


class AlchemyTransfersClient(TransferHistoryProvider):
    """
    Transfer history via Alchemy's `alchemy_getAssetTransfers` JSON-RPC method.

    Two queries are made per address (fromAddress and toAddress), each asking
    for the newest `max_count` transfers (`order: desc`, following `pageKey` up
    to `max_pages`). Both windows are merged, de-duplicated by uniqueId, put
    back in chronological order by block number and cut to the newest
    `max_count`. No inline retries: any failure raises HistoryUnavailableError.
    """

    def __init__(
        self,
        *,
        url: str,
        client: httpx.AsyncClient | None = None,
        timeout_s: float = 20.0,
        max_pages: int = _DEFAULT_MAX_PAGES,
    ) -> None:
        self._url = url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_s))
        self._max_pages = max_pages

    async def fetch_transfers(
        self,
        *,
        address: Address,
        categories: list[str],
        max_count: int,
    ) -> list[dict[str, Any]]:
        if max_count <= 0:
            raise ValueError("max_count must be positive")

        outgoing = await self._fetch_direction(
            direction="fromAddress", address=address, categories=categories, max_count=max_count
        )
        incoming = await self._fetch_direction(
            direction="toAddress", address=address, categories=categories, max_count=max_count
        )

        merged: dict[str, dict[str, Any]] = {}
        for raw in outgoing + incoming:
            merged.setdefault(_merge_key(raw), raw)

        return sorted(merged.values(), key=_block_of)[-max_count:]

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _fetch_direction(
        self,
        *,
        direction: str,
        address: Address,
        categories: list[str],
        max_count: int,
    ) -> list[dict[str, Any]]:
        """Newest `max_count` transfers for one direction, oldest first."""
        transfers: list[dict[str, Any]] = []
        page_key: str | None = None

        for _ in range(self._max_pages):
            remaining = max_count - len(transfers)
            params: dict[str, Any] = {
                "fromBlock": "0x0",
                direction: address,
                "category": categories,
                "withMetadata": True,
                "order": "desc",
                "maxCount": hex(min(remaining, _MAX_COUNT_PER_PAGE)),
            }
            if page_key:
                params["pageKey"] = page_key

            result = await self._call("alchemy_getAssetTransfers", [params])

            page = result.get("transfers") or []
            if not isinstance(page, list):
                raise HistoryUnavailableError("Indexing API returned malformed transfers")
            transfers.extend(t for t in page if isinstance(t, dict))

            page_key = result.get("pageKey")
            if not page_key or len(transfers) >= max_count:
                break
        else:
            logger.warning(
                "Transfer history truncated at %s pages",
                self._max_pages,
                extra={"address": address, "direction": direction},
            )

        transfers = transfers[:max_count]
        transfers.reverse()
        return transfers

    async def _call(self, method: str, params: list[Any]) -> dict[str, Any]:
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        try:
            r = await self._client.post(self._url, json=payload)
            r.raise_for_status()
            data = r.json()
        except httpx.HTTPStatusError as e:
            raise HistoryUnavailableError(
                f"Indexing API returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise HistoryUnavailableError(f"Indexing API request failed: {e}") from e
        except ValueError as e:
            raise HistoryUnavailableError("Indexing API returned invalid JSON") from e

        if not isinstance(data, dict):
            raise HistoryUnavailableError("Indexing API returned malformed response")
        if "error" in data:
            err = data["error"]
            msg = err.get("message") if isinstance(err, dict) else str(err)
            raise HistoryUnavailableError(f"{method} RPC error: {msg}")

        result = data.get("result")
        if not isinstance(result, dict):
            raise HistoryUnavailableError("Indexing API returned no result")
        return result
