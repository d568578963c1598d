"""
GST portal HSN lookup client
"""

import logging
from typing import Dict, List, Optional

import httpx

from shiv_accounts.core.config import settings
from shiv_accounts.core.constants import HsnCategory

logger = logging.getLogger(__name__)


class HsnLookupError(Exception):
    """Upstream lookup failure carrying the HTTP status to report"""

    def __init__(self, status_code: int, detail: str):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


def category_from_filter(category: Optional[str]) -> str:
    """Portal category filter (P / S / null) to the cached category"""
    if category == "P":
        return HsnCategory.PRODUCT
    if category == "S":
        return HsnCategory.SERVICE
    return HsnCategory.GENERAL


async def fetch_hsn_codes(
    input_text: str,
    selected_type: str = "byCode",
    category: Optional[str] = None,
    timeout: Optional[float] = None) -> List[Dict[str, str]]:
    """
    Query the GST portal

    Returns a list of {code, description, category}; an empty list when the
    portal has no match. Raises HsnLookupError for timeouts (408), a missing
    endpoint (404) and server or transport failures (502).
    """
    params = {
        "inputText": input_text,
        "selectedType": selected_type,
        "category": category or "null",
    }
    try:
        async with httpx.AsyncClient(timeout=timeout or settings.HSN_API_TIMEOUT) as client:
            response = await client.get(settings.HSN_API_BASE_URL, params=params)
        response.raise_for_status()
        payload = response.json()
    except httpx.TimeoutException as exc:
        logger.warning(f"HSN lookup timed out: {exc}")
        raise HsnLookupError(408, "HSN API request timeout")
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        logger.warning(f"HSN lookup failed with HTTP {status}")
        if status == 404:
            raise HsnLookupError(404, "HSN API not found")
        raise HsnLookupError(502, "HSN API server error")
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning(f"HSN lookup failed: {exc}")
        raise HsnLookupError(502, "HSN API unavailable")

    rows = payload.get("data") if isinstance(payload, dict) else None
    if not rows:
        return []

    mapped = category_from_filter(category)
    return [
        {"code": str(row.get("c", "")), "description": row.get("n", ""), "category": mapped}
        for row in rows
        if row.get("c")
    ]
