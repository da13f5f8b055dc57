"""
================================================================================
FILE: docs_expert/tools/maintenance.py
================================================================================

PURPOSE:
    Index health checks run from the CLI.

    verify_coverage():  does retrieval find something for each major topic?
    check_freshness():  has the upstream documentation changed since the
                        last check (ETag comparison)?

KEY FACTS:
    - Coverage uses the real Retriever (same threshold as live traffic)
    - Freshness state lives in a small JSON file (.docs-status.json)
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence

import httpx
from pydantic import BaseModel, ConfigDict, Field

from docs_expert.core.exceptions import RAGPipelineException
from docs_expert.pipeline.retriever import Retriever

logger = logging.getLogger(__name__)

COVERAGE_TOPICS = (
    "Next.js integration",
    "Python SDK",
    "Steps and workflows",
    "Event triggers",
    "Local development",
    "Deployment to Vercel",
    "Middleware",
    "Error handling and retries",
    "AgentKit AI",
    "Flow control and concurrency",
    "TypeScript SDK",
    "Go SDK",
    "REST API",
    "System events",
    "Cancellation",
    "Versioning",
    "Logging",
    "Rate limiting",
    "Throttling",
    "Batching",
)

EXCELLENT_COVERAGE_RATIO = 0.8


# ============================================================================
# SECTION 1: COVERAGE
# ============================================================================

@dataclass
class TopicResult:
    query: str
    found: bool
    score: Optional[float] = None
    error: Optional[str] = None


@dataclass
class CoverageReport:
    domain: str
    results: List[TopicResult] = field(default_factory=list)

    @property
    def found(self) -> int:
        return sum(1 for r in self.results if r.found)

    @property
    def ratio(self) -> float:
        return self.found / len(self.results) if self.results else 0.0

    @property
    def is_excellent(self) -> bool:
        return bool(self.results) and self.ratio >= EXCELLENT_COVERAGE_RATIO


async def verify_coverage(
    retriever: Retriever,
    domain_id: str,
    topics: Sequence[str] = COVERAGE_TOPICS,
) -> CoverageReport:
    """Run each topic through retrieval with top-K 1; a topic is covered if a passage clears the threshold."""
    report = CoverageReport(domain=domain_id)
    for query in topics:
        try:
            result = await retriever.retrieve(query, domain_id, top_k=1)
        except RAGPipelineException as e:
            logger.warning(f"Coverage query failed for '{query}': {e.message}")
            report.results.append(TopicResult(query=query, found=False, error=e.message))
            continue

        if result.passages:
            report.results.append(TopicResult(query=query, found=True, score=result.passages[0].score))
        else:
            report.results.append(TopicResult(query=query, found=False))

    logger.info(
        f"Coverage for {domain_id}: {report.found}/{len(report.results)} ({report.ratio:.0%})"
    )
    return report


# ============================================================================
# SECTION 2: FRESHNESS
# ============================================================================

class DocStatus(BaseModel):
    """Persisted result of the last freshness check."""

    model_config = ConfigDict(populate_by_name=True)

    url: str
    etag: str
    last_checked: str = Field(..., alias="lastChecked")
    size: int = 0


class FreshnessState(str, Enum):
    UP_TO_DATE = "up_to_date"
    UPDATED = "updated"
    FIRST_CHECK = "first_check"
    NO_ETAG = "no_etag"


@dataclass
class FreshnessReport:
    state: FreshnessState
    url: str
    current: Optional[DocStatus] = None
    previous: Optional[DocStatus] = None


def load_status(path: Path) -> Optional[DocStatus]:
    if not path.exists():
        return None
    try:
        return DocStatus.model_validate_json(path.read_text(encoding="utf-8"))
    except ValueError as e:
        logger.warning(f"Ignoring unreadable status file {path}: {e}")
        return None


def save_status(path: Path, status: DocStatus) -> None:
    path.write_text(
        json.dumps(status.model_dump(by_alias=True), indent=2),
        encoding="utf-8",
    )


async def check_freshness(
    url: str,
    status_path: Path,
    timeout: float = 30.0,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FreshnessReport:
    """
    HEAD the documentation URL and compare its ETag with the stored one.

    The new status is written whenever the server returns an ETag.

    Raises:
        httpx.HTTPError: request failed
    """
    if http_client is not None:
        response = await http_client.head(url)
    else:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            response = await client.head(url)

    etag = response.headers.get("etag")
    if not etag:
        logger.warning(f"No ETag returned for {url}")
        return FreshnessReport(state=FreshnessState.NO_ETAG, url=url)

    current = DocStatus(
        url=url,
        etag=etag,
        last_checked=datetime.now(timezone.utc).isoformat(),
        size=int(response.headers.get("content-length") or 0),
    )
    previous = load_status(status_path)

    if previous is None:
        state = FreshnessState.FIRST_CHECK
    elif previous.etag == etag:
        state = FreshnessState.UP_TO_DATE
    else:
        state = FreshnessState.UPDATED

    save_status(status_path, current)
    logger.info(f"Docs freshness for {url}: {state.value}")
    return FreshnessReport(state=state, url=url, current=current, previous=previous)
