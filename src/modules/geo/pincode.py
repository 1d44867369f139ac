"""District/state lookup for Indian PIN codes."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from fastapi import status

from src.core.config import settings

logger = logging.getLogger(__name__)

_PINCODE_PATH = "/pincode/{pincode}"


@dataclass(frozen=True)
class PincodeInfo:
    district: str
    state: str


async def lookup_pincode(pincode: str, client: httpx.AsyncClient | None = None) -> PincodeInfo | None:
    """Return district/state for ``pincode``, or None when the lookup fails.

    The lookup only enriches a booking, so every failure is logged and
    swallowed here rather than raised.
    """
    created_client = False
    if client is None:
        client = httpx.AsyncClient(
            base_url=settings.pincode_api_base,
            timeout=settings.pincode_timeout_seconds,
        )
        created_client = True
    try:
        response = await client.get(_PINCODE_PATH.format(pincode=pincode))
    except httpx.HTTPError as exc:
        logger.warning("PIN code lookup for %s failed: %s", pincode, exc)
        return None
    finally:
        if created_client:
            await client.aclose()

    if response.status_code != status.HTTP_200_OK:
        logger.warning("PIN code lookup for %s returned %s", pincode, response.status_code)
        return None
    try:
        payload = response.json()
    except ValueError:
        logger.warning("PIN code lookup for %s returned invalid JSON", pincode)
        return None

    entries = payload if isinstance(payload, list) else []
    post_offices = (entries[0].get("PostOffice") if entries and isinstance(entries[0], dict) else None) or []
    if not post_offices:
        logger.info("PIN code %s not found", pincode)
        return None
    office = post_offices[0]
    return PincodeInfo(district=office.get("District", ""), state=office.get("State", ""))
