"""Paginated fetching of Places search results."""

import logging
import time
from typing import Any, Callable, Dict, Iterator, Optional

from leadgen.core.retry import retry_with_backoff
from leadgen.models import GridPoint, PageResult
from leadgen.vendors import google_places

logger = logging.getLogger(__name__)

TOKEN_NOT_READY = "TOKEN_NOT_READY"

SearchCall = Callable[[Optional[str]], Dict[str, Any]]


def to_page(payload: Dict[str, Any]) -> PageResult:
    results = payload.get("results")
    return PageResult(
        status=str(payload.get("status") or google_places.INVALID_RESPONSE),
        results=[r for r in results if isinstance(r, dict)] if isinstance(results, list) else [],
        next_page_token=payload.get("next_page_token") or None,
        error_message=payload.get("error_message"),
    )


def text_search_call(
    query: str, api_key: str, language: Optional[str] = None, region: Optional[str] = None
) -> SearchCall:
    def call(token: Optional[str]) -> Dict[str, Any]:
        return google_places.text_search(query, api_key, pagetoken=token, language=language, region=region)

    return call


def nearby_search_call(
    location: GridPoint, radius_m: int, keyword: str, api_key: str, language: Optional[str] = None
) -> SearchCall:
    def call(token: Optional[str]) -> Dict[str, Any]:
        return google_places.nearby_search(
            location, radius_m, keyword, api_key, pagetoken=token, language=language
        )

    return call


def _token_not_ready(page: PageResult) -> bool:
    return page.status == "INVALID_REQUEST"


def fetch_page(call: SearchCall, token: Optional[str] = None, *, token_delay: float, token_attempts: int) -> PageResult:
    """Fetch one page; continuation tokens rejected as not yet active are retried."""
    if not token:
        return to_page(call(None))

    page = retry_with_backoff(
        lambda: to_page(call(token)),
        max_attempts=token_attempts,
        delay=token_delay,
        should_retry=_token_not_ready,
    )
    if _token_not_ready(page):
        logger.warning("next_page_token not ready after %d attempts", token_attempts)
        return PageResult(
            status=TOKEN_NOT_READY,
            error_message=f"next_page_token was not ready after {token_attempts} attempts",
        )
    return page


def iter_pages(
    call: SearchCall,
    *,
    max_pages: int,
    token_delay: float,
    token_attempts: int,
    should_stop: Optional[Callable[[], bool]] = None,
) -> Iterator[PageResult]:
    """Yield pages until the token runs out, ``max_pages`` is hit or ``should_stop`` says so.

    Iteration also ends after any page whose status is not a success; the
    caller decides whether that page is fatal.
    """
    token: Optional[str] = None
    for page_number in range(max_pages):
        if should_stop is not None and should_stop():
            return
        if token:
            # Tokens only become valid a couple of seconds after they are issued.
            time.sleep(token_delay)
        page = fetch_page(call, token, token_delay=token_delay, token_attempts=token_attempts)
        logger.debug("Page %d status=%s results=%d", page_number + 1, page.status, len(page.results))
        yield page
        if not page.ok or not page.next_page_token:
            return
        token = page.next_page_token
