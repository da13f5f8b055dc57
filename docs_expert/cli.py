"""
================================================================================
FILE: docs_expert/cli.py
================================================================================

PURPOSE:
    `docs-expert` console script.

COMMANDS:
    serve            run the HTTP API with uvicorn
    worker           run the Redis pub/sub worker until SIGINT/SIGTERM
    ingest           ingest official docs, or --file/--url/--text into --domain
    verify-coverage  topic queries through the retriever (top-K 1)
    check-freshness  compare the docs ETag with .docs-status.json
    ask              round trip one question through the bus

Exit codes: 0 success, 1 failure, 2 bad configuration.
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlparse

import uvicorn

from docs_expert import __version__
from docs_expert.config.settings import Settings
from docs_expert.container.service_container import ServiceContainer
from docs_expert.core.domain_registry import DomainRegistry
from docs_expert.core.exceptions import (
    ConfigurationError,
    RAGPipelineException,
    StorageError,
)
from docs_expert.core.redis_handler import RedisHandler
from docs_expert.tools.maintenance import FreshnessState, check_freshness, verify_coverage
from docs_expert.utils import configure_logging
from docs_expert.worker import RAGBusClient, RAGWorker

logger = logging.getLogger(__name__)


# ============================================================================
# SECTION 1: COMMANDS
# ============================================================================

def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    uvicorn.run(
        "docs_expert.api.main:app",
        host=args.host or settings.server_host,
        port=args.port or settings.server_port,
        reload=args.reload,
        log_config=None,
    )
    return 0


async def cmd_worker(args: argparse.Namespace, settings: Settings) -> int:
    settings.validate_runtime()
    container = ServiceContainer(settings)
    await container.initialize()
    bus = RedisHandler(settings)
    try:
        await bus.connect()
        worker = RAGWorker(container.get_generator(), bus, settings)
        await worker.start()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda: asyncio.ensure_future(worker.stop()))

        await worker.run()
    finally:
        await bus.close()
        await container.shutdown()
    return 0


async def cmd_ingest(args: argparse.Namespace, settings: Settings) -> int:
    settings.validate_runtime()
    container = ServiceContainer(settings)
    await container.initialize()
    ingestion = container.get_ingestion()
    domain_id = args.domain or settings.default_domain

    try:
        if not (args.file or args.url or args.text):
            result = await ingestion.ingest_official_docs(domain_id)
        else:
            domain = container.registry.ensure(domain_id)
            documents = []
            for path in args.file or []:
                file_path = Path(path)
                documents.append((ingestion.read_file(file_path.name, file_path.read_bytes()), file_path.name))
            for url in args.url or []:
                documents.append((await ingestion.fetch_url(url), url))
            if args.text:
                documents.append((args.text, "Direct input"))
            result = await ingestion.ingest_documents(documents, domain.id)
    except StorageError as e:
        print(f"❌ Ingestion aborted: {e.message} ({e.stored_count} chunks stored before the failure)")
        return 1
    finally:
        await container.shutdown()

    print(f"✅ {result.message}")
    return 0


async def cmd_verify_coverage(args: argparse.Namespace, settings: Settings) -> int:
    settings.validate_runtime()
    container = ServiceContainer(settings)
    await container.initialize()
    try:
        report = await verify_coverage(container.get_retriever(), args.domain or settings.default_domain)
    finally:
        await container.shutdown()

    for result in report.results:
        if result.found:
            print(f"✅ {result.query}: Found (score: {result.score:.3f})")
        elif result.error:
            print(f"❌ {result.query}: Error - {result.error}")
        else:
            print(f"❌ {result.query}: No good results found")

    print(f"\nCoverage: {report.found}/{len(report.results)} topics ({report.ratio:.0%})")
    if report.is_excellent:
        print("🎉 Excellent coverage!")
        return 0
    print("⚠️ Coverage could be improved. Check the source URL or the ingestion run.")
    return 1


async def cmd_check_freshness(args: argparse.Namespace, settings: Settings) -> int:
    url = args.url or _default_docs_url(settings)
    if not url:
        print("❌ No plain-text documentation URL configured; pass --url")
        return 1

    report = await check_freshness(
        url,
        Path(args.status_file or settings.docs_status_file),
        timeout=settings.http_fetch_timeout,
    )
    if report.state == FreshnessState.NO_ETAG:
        print(f"⚠️ No ETag returned by {url}")
    elif report.state == FreshnessState.FIRST_CHECK:
        print(f"📋 First check recorded (ETag {report.current.etag}, {report.current.size} bytes)")
    elif report.state == FreshnessState.UP_TO_DATE:
        print(f"✅ Documentation is up-to-date (last checked {report.previous.last_checked})")
    else:
        print("🆕 Documentation has been updated!")
        print(f"   ETag: {report.previous.etag} -> {report.current.etag}")
        print(f"   Size: {report.previous.size} -> {report.current.size}")
        print(f"   Re-ingest with: docs-expert ingest --domain {settings.default_domain} --url {url}")
    return 0


async def cmd_ask(args: argparse.Namespace, settings: Settings) -> int:
    async with RedisHandler(settings) as bus:
        response = await RAGBusClient(bus, settings).ask(
            args.message,
            user_id=args.user_id,
            channel_id=args.channel_id,
            domain=args.domain,
            timeout=args.timeout,
        )

    print(response.response)
    if response.sources:
        print("\nSources:")
        for source in response.sources:
            print(f"- {source}")
    return 0 if response.success else 1


def _default_docs_url(settings: Settings) -> Optional[str]:
    domain = DomainRegistry().get(settings.default_domain)
    if domain is None:
        return None
    for url in domain.official_doc_urls:
        if urlparse(url).path.endswith(".txt"):
            return url
    return None


# ============================================================================
# SECTION 2: ARGUMENT PARSING
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docs-expert",
        description="Documentation expert RAG chatbot",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host")
    serve.add_argument("--port", type=int)
    serve.add_argument("--reload", action="store_true")

    sub.add_parser("worker", help="Run the pub/sub worker")

    ingest = sub.add_parser("ingest", help="Ingest documentation into a domain")
    ingest.add_argument("--domain", help="Target domain (default: DEFAULT_DOMAIN)")
    ingest.add_argument("--file", action="append", help="File to ingest (repeatable)")
    ingest.add_argument("--url", action="append", help="URL to ingest (repeatable)")
    ingest.add_argument("--text", help="Raw text to ingest")

    coverage = sub.add_parser("verify-coverage", help="Check retrieval coverage of major topics")
    coverage.add_argument("--domain")

    freshness = sub.add_parser("check-freshness", help="Check whether upstream docs changed")
    freshness.add_argument("--url")
    freshness.add_argument("--status-file")

    ask = sub.add_parser("ask", help="Ask one question through the message bus")
    ask.add_argument("message")
    ask.add_argument("--domain")
    ask.add_argument("--timeout", type=float)
    ask.add_argument("--user-id", default="cli")
    ask.add_argument("--channel-id", default="cli")

    return parser


ASYNC_COMMANDS = {
    "worker": cmd_worker,
    "ingest": cmd_ingest,
    "verify-coverage": cmd_verify_coverage,
    "check-freshness": cmd_check_freshness,
    "ask": cmd_ask,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = Settings()
    except ValueError as e:
        print(f"❌ Invalid configuration: {e}", file=sys.stderr)
        return 2
    configure_logging(settings.log_level, settings.log_format)

    try:
        if args.command == "serve":
            return cmd_serve(args, settings)
        return asyncio.run(ASYNC_COMMANDS[args.command](args, settings))
    except ConfigurationError as e:
        print(f"❌ {e.message}", file=sys.stderr)
        return 2
    except RAGPipelineException as e:
        logger.error(f"{args.command} failed: {e}", extra={"context": e.context})
        print(f"❌ {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
