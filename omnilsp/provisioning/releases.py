"""Fetching the list of published server releases."""

import logging
from typing import List, Optional

import requests
from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from omnilsp.errors import NetworkError, ParseError
from omnilsp.provisioning.versions import is_version_tag, latest

logger = logging.getLogger("omnilsp.provisioning.releases")

DEFAULT_CATALOG_TIMEOUT = 30


class ReleaseCatalogEntry(BaseModel):
    """One published release. Only the name is used."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str


_catalog_adapter = TypeAdapter(List[ReleaseCatalogEntry])


def fetch_releases(
    catalog_url: str,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_CATALOG_TIMEOUT,
) -> List[ReleaseCatalogEntry]:
    """Fetch the release catalog.

    Args:
        catalog_url: URL returning a JSON list of objects with a ``name`` field.
        session: HTTP session to use. A plain ``requests`` call is made if None.
        timeout: Request timeout in seconds.

    Returns:
        Catalog entries in the order the catalog lists them.

    Raises:
        NetworkError: If the host is unreachable, the request times out, or
            the response status is not 2xx.
        ParseError: If the body is not JSON or does not match the schema.
    """
    http = session or requests
    logger.info(f"Fetching release catalog from {catalog_url}")

    try:
        response = http.get(catalog_url, timeout=timeout, headers={"Accept": "application/json"})
        response.raise_for_status()
    except requests.RequestException as e:
        raise NetworkError(f"Failed to fetch release catalog from {catalog_url}: {e}") from e

    try:
        payload = response.json()
    except ValueError as e:
        raise ParseError(f"Release catalog from {catalog_url} is not valid JSON: {e}") from e

    try:
        entries = _catalog_adapter.validate_python(payload)
    except ValidationError as e:
        raise ParseError(f"Unexpected release catalog format from {catalog_url}: {e}") from e

    logger.debug(f"Release catalog lists {len(entries)} releases")
    return entries


def latest_available(entries: List[ReleaseCatalogEntry]) -> Optional[str]:
    """Return the newest version tag listed in a catalog, or None."""
    return latest(entry.name for entry in entries if is_version_tag(entry.name))
