import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import requests
from requests import RequestException

from dseplannr.config.settings import settings
from dseplannr.core.cutoff_parser import (
    looks_like_elective_document,
    parse_elective_cutoffs,
    parse_primary_document,
)
from dseplannr.core.cutoff_store import CutoffStore, merge_cutoff_data

logger = logging.getLogger(__name__)


class CutoffServiceError(Exception):
    pass


@dataclass(frozen=True)
class CutoffLoadResult:
    store: CutoffStore = field(default_factory=dict)
    using_generic_fallback: bool = True


class CutoffDocumentSource:
    """Reads cut-off documents from an http(s) base URL or a local directory."""

    def __init__(
        self,
        base_url: str,
        main_document: str,
        elective_document: str,
        *,
        timeout: float = 15.0,
    ) -> None:
        if not base_url:
            raise CutoffServiceError("Missing CUTOFF_BASE_URL in environment")
        self.base_url = base_url.rstrip("/")
        self.main_document = main_document
        self.elective_document = elective_document
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> "CutoffDocumentSource":
        return cls(
            settings.cutoff_base_url,
            settings.cutoff_main_document,
            settings.cutoff_elective_document,
            timeout=settings.cutoff_fetch_timeout,
        )

    @property
    def is_remote(self) -> bool:
        return self.base_url.startswith(("http://", "https://"))

    def fetch(self, name: str) -> str:
        if self.is_remote:
            return self._get(f"{self.base_url}/{name.lstrip('/')}")
        return self._read(Path(self.base_url) / name)

    def _get(self, url: str) -> str:
        try:
            res = requests.get(url, timeout=self.timeout)
        except RequestException as exc:
            raise CutoffServiceError(f"Failed to fetch {url}: {exc}") from exc
        if res.status_code >= 400:
            raise CutoffServiceError(f"Failed to fetch {url}. Status {res.status_code}")
        res.encoding = "utf-8"
        return res.text

    @staticmethod
    def _read(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, ValueError) as exc:
            raise CutoffServiceError(f"Failed to read {path}: {exc}") from exc


async def _fetch(source: CutoffDocumentSource, name: str) -> str:
    return await asyncio.to_thread(source.fetch, name)


async def load_cutoff_data(source: Optional[CutoffDocumentSource] = None) -> CutoffLoadResult:
    """
    Build the cut-off store once for the session.

    The primary and elective documents are fetched concurrently. Any failure of
    the primary document, or a primary document with no subjects, yields an empty
    store flagged as running on the generic cut-offs. Elective failures only
    drop the elective subjects.
    """
    try:
        source = source or CutoffDocumentSource.from_settings()
        main_res, elective_res = await asyncio.gather(
            _fetch(source, source.main_document),
            _fetch(source, source.elective_document),
            return_exceptions=True,
        )
        if isinstance(main_res, BaseException):
            raise main_res

        store = parse_primary_document(main_res)
        if not store:
            raise CutoffServiceError("Cut-off document was parsed but no subject cut-offs were found.")

        if isinstance(elective_res, BaseException):
            logger.info("Elective cut-offs unavailable: %s", elective_res)
        elif looks_like_elective_document(elective_res):
            store = merge_cutoff_data(store, parse_elective_cutoffs(elective_res))
        else:
            logger.info("Elective document not recognised; skipping electives")
    except CutoffServiceError as exc:
        logger.warning(
            "Could not load subject-specific DSE cut-off data. Falling back to generic cut-offs. %s",
            exc,
        )
        return CutoffLoadResult({}, True)

    logger.info("Loaded DSE cut-offs for %d subjects", len(store))
    return CutoffLoadResult(store, False)


def load_cutoff_data_sync(source: Optional[CutoffDocumentSource] = None) -> CutoffLoadResult:
    return asyncio.run(load_cutoff_data(source))
