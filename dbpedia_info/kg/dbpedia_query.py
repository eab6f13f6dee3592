"""
DBpedia SPARQL client.
Looks up the English description and thumbnail of the entity labelled with a term.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

import httpx
from rdflib import Literal, Namespace, RDFS
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from ..common.config import Settings, settings
from ..common.errors import DbpediaLookupError
from ..common.schemas import LookupResult

logger = logging.getLogger(__name__)

SPARQL_JSON = "application/sparql-results+json"
DBO = Namespace("http://dbpedia.org/ontology/")

QUERY_TEMPLATE = """
      SELECT ?description ?image WHERE {{
        ?s {label} {term}.
        OPTIONAL {{
          ?s {comment} ?description.
          FILTER (lang(?description) = 'en')
        }}
        OPTIONAL {{
          ?s {thumbnail} ?image.
        }}
      }}
    """


def build_query(term: str) -> str:
    """SPARQL text selecting description and image for the entity labelled `term`@en."""
    return QUERY_TEMPLATE.format(
        label=RDFS.label.n3(),
        term=Literal(term, lang="en").n3(),
        comment=RDFS.comment.n3(),
        thumbnail=DBO.thumbnail.n3(),
    )


def build_params(term: str) -> Dict[str, str]:
    return {"format": SPARQL_JSON, "query": build_query(term)}


def parse_bindings(term: str, data: Any) -> LookupResult:
    """Take the first binding of a SPARQL JSON result."""
    try:
        bindings = data["results"]["bindings"]
    except (KeyError, TypeError) as e:
        raise DbpediaLookupError(term, "response has no results.bindings") from e
    if not isinstance(bindings, list) or not bindings:
        raise DbpediaLookupError(term, "no bindings")
    first = bindings[0]
    if not isinstance(first, dict):
        raise DbpediaLookupError(term, "malformed binding")
    return LookupResult(
        description=_value(term, first, "description"),
        image=_value(term, first, "image"),
    )


def _value(term: str, binding: Dict[str, Any], key: str) -> Optional[str]:
    entry = binding.get(key)
    if not isinstance(entry, dict):
        return None
    value = entry.get("value")
    if value is not None and not isinstance(value, str):
        raise DbpediaLookupError(term, f"malformed binding: {key} is not a string")
    return value


def _is_retryable(e: BaseException) -> bool:
    """Transport errors and 5xx answers; 4xx will not change on retry."""
    if isinstance(e, httpx.HTTPStatusError):
        return e.response.status_code >= 500
    return isinstance(e, httpx.TransportError)


async def _get(client: httpx.AsyncClient, cfg: Settings, term: str) -> httpx.Response:
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max(1, cfg.LOOKUP_ATTEMPTS)),
        wait=wait_exponential(min=1, max=8),
        retry=retry_if_exception(_is_retryable),
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            r = await client.get(
                cfg.DBPEDIA_SPARQL_ENDPOINT,
                params=build_params(term),
                headers={"Accept": SPARQL_JSON},
            )
            r.raise_for_status()
    return r


async def lookup(
    term: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
    cfg: Optional[Settings] = None,
) -> LookupResult:
    """
    Fetch description and thumbnail for a term from DBpedia.

    Args:
        term: English label of the entity
        client: Optional client, a new one is created (and closed) otherwise
        cfg: Settings override

    Returns:
        LookupResult with None for every field DBpedia has no value for

    Raises:
        DbpediaLookupError: on transport or HTTP errors, a non-JSON body or an
            empty result set
    """
    cfg = cfg or settings
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=cfg.LOOKUP_TIMEOUT) as own_client:
                r = await _get(own_client, cfg, term)
        else:
            r = await _get(client, cfg, term)
    except httpx.HTTPStatusError as e:
        raise DbpediaLookupError(term, f"HTTP {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise DbpediaLookupError(term, f"{type(e).__name__}: {e}") from e

    try:
        data = r.json()
    except ValueError as e:
        raise DbpediaLookupError(term, "response is not JSON") from e
    result = parse_bindings(term, data)
    logger.debug("lookup %r -> description=%s image=%s", term,
                 result.description is not None, result.image is not None)
    return result


def lookup_sync(term: str, cfg: Optional[Settings] = None) -> LookupResult:
    """Blocking wrapper around `lookup` for scripts."""
    return asyncio.run(lookup(term, cfg=cfg))


__all__ = ["lookup", "lookup_sync", "build_query", "build_params", "parse_bindings", "SPARQL_JSON"]
