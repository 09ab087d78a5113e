from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path

import httpx
from dotenv import load_dotenv

from valoris.config.loader import DEFAULT_CONFIG_PATH, ConfigError, ValorisConfig, load_config
from valoris.errors import ParsingError
from valoris.excel.reader import read_tabular_file
from valoris.logging.error_log import ErrorLogBuffer
from valoris.logging.init import log_summary, setup_logging
from valoris.models.conversation import ChatMessage, MessageContext
from valoris.models.processing_result import IngestionResult
from valoris.models.uploaded_file import FileKind, classify_file
from valoris.services.aggregator import group_by_vendor
from valoris.services.chat import ChatService
from valoris.services.conversation_store import ConversationStore, generate_message_id
from valoris.services.orchestrator import IngestionService
from valoris.services.pipeline import AnalysisPipeline
from valoris.services.remote import AnalysisServiceClient
from valoris.services.summary import render_summary_line

"""CLI entrypoint.

valoris [--config PATH] [--debug] [--inspect-data] [--ask MESSAGE] FILE...

- Load ``.env`` (python-dotenv, overriding the process environment)
- Load and validate the config
- Ingest every file (read -> analyze -> store)
- Print the SUMMARY line, optionally ask the assistant one question
- Flush the JSON Lines error log

Exit codes: 0 all files ok, 2 at least one file failed, 1 fatal.
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

INSPECT_SAMPLE_ROWS = 3


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so VALORIS_* credentials take precedence over the config file."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="valoris", description="Procurement spend analysis")
    p.add_argument("files", nargs="*", type=Path, help="Spreadsheet, CSV, PDF or image files")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to valoris.yml")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print detected columns, sample rows and vendors, then exit")
    p.add_argument("--ask", metavar="MESSAGE", help="Ask the assistant about the last analysed file")
    return p.parse_args(argv)


def _inspect_data(cfg: ValorisConfig, files: list[Path]) -> int:
    for f in files:
        print(f"FILE: {f.name} kind={classify_file(f).value}")
        if not f.exists():
            print("  read_error: file not found")
            continue
        if classify_file(f) not in (FileKind.WORKBOOK, FileKind.DELIMITED):
            continue
        try:
            rows = read_tabular_file(f, cfg.number_locale)
        except ParsingError as e:
            print(f"  read_error: {e}")
            continue
        columns = list(rows[0].keys()) if rows else []
        print(f"  rows={len(rows)} cols={columns}")
        print("    sample_rows=", json.dumps(rows[:INSPECT_SAMPLE_ROWS], default=str, ensure_ascii=False))
        vendors = group_by_vendor(rows)
        print(f"  vendors={len(vendors)} spend={sum(v.spend for v in vendors):.2f}")
    return EXIT_SUCCESS_ALL


async def _ask(chat: ChatService, store: ConversationStore, message: str) -> None:
    logger = logging.getLogger("valoris.cli")
    current = store.current_file
    context = store.get_chat_context()
    history = store.get_conversation_history(current.file_id) if current else []
    reply = await chat.send_message(message, context, history)
    if not reply.success:
        logger.error(f"chat: {reply.error}")
        return
    print(reply.message)
    if current is None:
        return
    now = datetime.now(UTC)
    ctx = MessageContext(file_id=current.file_id)
    store.add_chat_message(current.file_id, ChatMessage(generate_message_id(), "user", message, now, ctx))
    store.add_chat_message(
        current.file_id, ChatMessage(generate_message_id(), "assistant", reply.message or "", now, ctx)
    )


async def _run(
    cfg: ValorisConfig,
    args: argparse.Namespace,
    error_log: ErrorLogBuffer,
    transport: httpx.AsyncBaseTransport | None = None,
) -> IngestionResult:
    async with httpx.AsyncClient(transport=transport) as http:
        pipeline = AnalysisPipeline(
            cfg.analysis_service,
            client=AnalysisServiceClient(cfg.analysis_service, http),
            error_log=error_log,
            cache_capacity=cfg.cache_capacity,
        )
        store = ConversationStore()
        service = IngestionService(pipeline, store, error_log, locale=cfg.number_locale)
        result = await service.ingest_all(args.files)
        log_summary(render_summary_line(result)[len("SUMMARY "):])
        if args.ask:
            await _ask(ChatService(cfg.chat, http), store, args.ask)
    return result


def main(argv: list[str] | None = None, *, transport: httpx.AsyncBaseTransport | None = None) -> int:
    logger = setup_logging()

    # Only read sys.argv when nothing was passed (tests call main([]))
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        for h in logger.handlers:
            h.setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if not args.files:
        logger.error("no input files given")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(cfg, args.files)

    error_log = ErrorLogBuffer(Path(cfg.error_log_dir))
    try:
        if any(classify_file(f) in (FileKind.WORKBOOK, FileKind.DELIMITED) for f in args.files):
            cfg.analysis_service.require_credentials()
        result = asyncio.run(_run(cfg, args, error_log, transport))
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    finally:
        log_path = error_log.flush()
        if log_path is not None:
            logger.info(f"error log written: {log_path}")

    if result.failed_files > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
