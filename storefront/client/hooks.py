"""Read-only fetchers for auxiliary data; failures never raise."""
import logging
from typing import Any, NamedTuple, Optional

import httpx

from .http import ApiClient, ApiRequestError

logger = logging.getLogger(__name__)


class FetchResult(NamedTuple):
    data: Any
    error: Optional[Exception] = None


def use_category(client: ApiClient) -> FetchResult:
    try:
        return FetchResult(client.categories())
    except (ApiRequestError, httpx.HTTPError) as e:
        logger.warning("category list unavailable: %s", e)
        return FetchResult([], e)
