"""Base source adapter.

Every source inherits from BaseSource: configuration is injected through
``__init__`` and ``fetch(client, target_date)`` returns one Section or
raises a ProviderError.
"""

import logging
from abc import ABC, abstractmethod
from datetime import date

import httpx

from ..errors import ProviderFetchError
from ..models import Section, SourceKind

logger = logging.getLogger(__name__)


class BaseSource(ABC):
    """Abstract base class for all reading sources."""

    kind: SourceKind
    name: str = ""  # short identifier used in logs and error maps

    @abstractmethod
    async def fetch(self, client: httpx.AsyncClient, target_date: date) -> Section:
        """Fetch and normalize this source's section for ``target_date``.

        Raises:
            ProviderFetchError: transport failure or non-2xx status.
            ProviderParseError: unexpected payload shape.
            NoCandidatesError: nothing usable after normalization.
        """
        ...

    async def _get(
        self,
        client: httpx.AsyncClient,
        url: str,
        params: dict | None = None,
    ) -> httpx.Response:
        """GET ``url``, mapping transport and status failures to ProviderFetchError."""
        try:
            resp = await client.get(url, params=params)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ProviderFetchError(
                self.name, f"HTTP {exc.response.status_code} from {url}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderFetchError(self.name, f"request failed: {exc!r}") from exc
        logger.debug("%s: %s -> %d", self.name, resp.url, resp.status_code)
        return resp

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
