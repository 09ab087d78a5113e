from __future__ import annotations

import asyncio
import hashlib
import json
import logging
from collections.abc import Sequence

from valoris.config.loader import AnalysisServiceConfig
from valoris.errors import ApiError, NetworkError, ParsingError, ValidationError
from valoris.logging.error_log import ErrorLogBuffer
from valoris.models.analysis import AnalysisResult
from valoris.models.records import RawRow

from .aggregator import group_by_vendor
from .cache import BoundedStore
from .fallback import synthesize_analysis
from .payload import prepare_payload
from .remote import ENRICH_STAGE, NORMALIZE_STAGE, AnalysisServiceClient
from .shape_adapters import find_payload_array
from .spend_mapping import build_summary, map_items

"""Analysis request pipeline.

``AnalysisPipeline.analyze(rows)``:

1. reject empty input, then check credentials (ConfigError, no network)
2. hash the rows; a cached result for the hash is returned as-is
3. join an in-flight task for the same hash instead of starting another;
   callers await it through ``asyncio.shield``
4. group rows by vendor and pick the stage 1 payload shape
5. stage 1 (normalize) -> stage 2 (enrich) -> shape adapters -> item mapping
6. build the summary locally from the final item list
7. on any stage failure, log it and synthesize a fallback result
8. cache the result under its hash

The cache and the in-flight map are the only shared state; both are keyed by
content hash and bounded by ``cache_capacity``.
"""

__all__ = [
    "STAGE_FAILURES",
    "content_hash",
    "AnalysisPipeline",
]

STAGE_FAILURES = (ApiError, NetworkError, ParsingError, ValidationError)

logger = logging.getLogger(__name__)


def content_hash(rows: Sequence[RawRow]) -> str:
    """sha256 over a canonical JSON serialisation of the rows."""
    serialized = json.dumps(
        list(rows), sort_keys=True, default=str, separators=(",", ":"), ensure_ascii=False
    )
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


class AnalysisPipeline:
    def __init__(
        self,
        config: AnalysisServiceConfig,
        client: AnalysisServiceClient | None = None,
        error_log: ErrorLogBuffer | None = None,
        cache_capacity: int = 10,
    ) -> None:
        self.config = config
        self.client = client if client is not None else AnalysisServiceClient(config)
        self.error_log = error_log
        self._cache: BoundedStore[str, AnalysisResult] = BoundedStore(cache_capacity)
        self._in_flight: BoundedStore[str, asyncio.Task[AnalysisResult]] = BoundedStore(cache_capacity)

    @property
    def cache(self) -> BoundedStore[str, AnalysisResult]:
        return self._cache

    async def analyze(self, rows: Sequence[RawRow], file_name: str = "") -> AnalysisResult:
        """Analyze raw spreadsheet rows.

        Raises:
            ValidationError: no rows, or no vendor to build a fallback from
            ConfigError: the analysis service is not configured
        """
        if not rows:
            raise ValidationError("no rows to analyze")
        self.config.require_credentials()

        key = content_hash(rows)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("cache hit hash=%s", key[:12])
            return cached

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._run(list(rows), key, file_name))
            task.add_done_callback(lambda t: self._forget(key, t))
            self._in_flight.set(key, task)
        else:
            logger.debug("joining in-flight analysis hash=%s", key[:12])

        # a cancelled caller must not cancel the task other callers joined
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Task[AnalysisResult]) -> None:
        if self._in_flight.get(key) is task:
            self._in_flight.pop(key)

    async def _run(self, rows: list[RawRow], key: str, file_name: str) -> AnalysisResult:
        vendors = group_by_vendor(rows)
        payload = prepare_payload(rows, vendors, self.config.schema_version)
        logger.info(
            "analysis start file=%s rows=%d vendors=%d format=%s hash=%s",
            file_name, len(rows), len(vendors), payload.format, key[:12],
        )

        stage = NORMALIZE_STAGE
        try:
            normalized = await self.client.normalize(payload.body)
            stage = ENRICH_STAGE
            enriched = await self.client.enrich(normalized)
            items = find_payload_array(enriched)
            if items is None:
                raise ValidationError("no analysis array found in enrich response")
            analysis = map_items(items)
        except STAGE_FAILURES as e:
            if self.error_log is not None:
                self.error_log.record_error(file_name or key[:12], stage, e)
            logger.warning(
                "stage=%s error_type=%s status=%s message=%s",
                stage, e.error_type, e.status_code if e.status_code is not None else -1, e.message,
            )
            result = synthesize_analysis(vendors, key)
            logger.warning(
                "analysis fallback=True file=%s vendors=%d hash=%s", file_name, len(result.analysis), key[:12]
            )
        else:
            result = AnalysisResult(
                analysis=analysis, summary=build_summary(analysis), fallback=False, content_hash=key
            )
            logger.info(
                "analysis source=remote file=%s vendors=%d hash=%s", file_name, len(analysis), key[:12]
            )

        self._cache.set(key, result)
        return result
