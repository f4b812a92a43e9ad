# src/main.py — v2
"""CLI entry point — classify, categories, corpus and cache commands.

Usage:
    kbroute classify "<query>" [--fast]
    kbroute import-corpus <file.json|file.jsonl>
    kbroute discover [--dry-run]
    kbroute suggest <file> [--name NAME]
    kbroute categories
    kbroute create-category <name> --description TEXT [--keywords a,b]
    kbroute delete-category <name>
    kbroute assign <document_id> <category>
    kbroute recount
    kbroute stats
    kbroute cache-stats
    kbroute invalidate

Results go to stdout as JSON; logs go to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

from kbroute.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    from kbroute.config.settings import ConfigurationError, Settings

    try:
        settings = Settings()
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(_run(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="kbroute",
        description=f"kbroute v{__version__} — knowledge-base query routing and caching",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    p_classify = subparsers.add_parser("classify", help="Classify a query")
    p_classify.add_argument("query", help="User query")
    p_classify.add_argument(
        "--fast", action="store_true",
        help="Keyword/semantic only, never call the completion provider",
    )
    p_classify.set_defaults(func=_cmd_classify)

    p_import = subparsers.add_parser(
        "import-corpus", help="Load documents from a JSON array or JSONL file",
    )
    p_import.add_argument("file", type=Path, help="Corpus file")
    p_import.set_defaults(func=_cmd_import)

    p_discover = subparsers.add_parser(
        "discover", help="Discover categories across the corpus and save them",
    )
    p_discover.add_argument(
        "--dry-run", action="store_true",
        help="Print discovered categories without saving",
    )
    p_discover.set_defaults(func=_cmd_discover)

    p_suggest = subparsers.add_parser("suggest", help="Suggest a category for a file")
    p_suggest.add_argument("file", type=Path, help="Text file to classify")
    p_suggest.add_argument("--name", default=None, help="Document name (default: file name)")
    p_suggest.set_defaults(func=_cmd_suggest)

    p_list = subparsers.add_parser("categories", help="List active categories")
    p_list.set_defaults(func=_cmd_categories)

    p_create = subparsers.add_parser("create-category", help="Create a category")
    p_create.add_argument("name")
    p_create.add_argument("--description", default="")
    p_create.add_argument("--keywords", default="", help="Comma-separated keywords")
    p_create.set_defaults(func=_cmd_create)

    p_delete = subparsers.add_parser("delete-category", help="Delete a category")
    p_delete.add_argument("name")
    p_delete.set_defaults(func=_cmd_delete)

    p_assign = subparsers.add_parser("assign", help="Assign a document to a category")
    p_assign.add_argument("document_id")
    p_assign.add_argument("category")
    p_assign.set_defaults(func=_cmd_assign)

    p_recount = subparsers.add_parser("recount", help="Recount category documents")
    p_recount.set_defaults(func=_cmd_recount)

    p_stats = subparsers.add_parser("stats", help="Show category coverage statistics")
    p_stats.set_defaults(func=_cmd_stats)

    p_cache = subparsers.add_parser("cache-stats", help="Show cache statistics")
    p_cache.set_defaults(func=_cmd_cache_stats)

    p_invalidate = subparsers.add_parser(
        "invalidate", help="Clear stats, search and document caches",
    )
    p_invalidate.set_defaults(func=_cmd_invalidate)

    return parser


async def _run(args: argparse.Namespace, settings: Any) -> int:
    from kbroute.api.facade import KnowledgeRouter

    router = KnowledgeRouter.from_settings(settings)
    try:
        return await args.func(args, router)
    finally:
        await router.close()


async def _cmd_classify(args: argparse.Namespace, router: Any) -> int:
    if args.fast:
        result = await router.classify_query_fast(args.query)
    else:
        result = await router.classify_query(args.query)
    _emit(result)
    return 0


async def _cmd_import(args: argparse.Namespace, router: Any) -> int:
    from kbroute.core.models import CorpusItem

    file_path: Path = args.file
    if not file_path.exists():
        logger.error("File not found: %s", file_path)
        return 1

    items = [CorpusItem.model_validate(record) for record in _read_records(file_path)]
    for item in items:
        await router.add_document(item)
    logger.info("Imported %d documents", len(items))
    _emit({"imported": len(items)})
    return 0


async def _cmd_discover(args: argparse.Namespace, router: Any) -> int:
    discovered = await router.discover_categories()
    if args.dry_run or not discovered:
        _emit(discovered)
        return 0
    report = await router.save_discovered_categories(discovered)
    _emit(asdict(report))
    return 0


async def _cmd_suggest(args: argparse.Namespace, router: Any) -> int:
    file_path: Path = args.file
    if not file_path.exists():
        logger.error("File not found: %s", file_path)
        return 1
    content = file_path.read_text(encoding="utf-8", errors="replace")
    _emit(await router.suggest_category(content, args.name or file_path.name))
    return 0


async def _cmd_categories(args: argparse.Namespace, router: Any) -> int:
    categories = await router.list_categories()
    _emit([c.model_dump(mode="json", exclude={"embedding"}) for c in categories])
    return 0


async def _cmd_create(args: argparse.Namespace, router: Any) -> int:
    keywords = [k.strip() for k in args.keywords.split(",") if k.strip()]
    category = await router.create_category(args.name, args.description, keywords)
    _emit(category.model_dump(mode="json", exclude={"embedding"}))
    return 0


async def _cmd_delete(args: argparse.Namespace, router: Any) -> int:
    deleted = await router.delete_category(args.name)
    _emit({"deleted": deleted})
    return 0 if deleted else 1


async def _cmd_assign(args: argparse.Namespace, router: Any) -> int:
    from kbroute.categories.service import CategoryNotFoundError, DocumentNotFoundError

    try:
        await router.assign_document(args.document_id, args.category)
    except (CategoryNotFoundError, DocumentNotFoundError) as exc:
        logger.error("%s not found: %s", type(exc).__name__.replace("NotFoundError", ""), exc)
        return 1
    _emit({"document_id": args.document_id, "category": args.category.lower()})
    return 0


async def _cmd_recount(args: argparse.Namespace, router: Any) -> int:
    await router.update_category_counts()
    _emit({"recounted": True})
    return 0


async def _cmd_stats(args: argparse.Namespace, router: Any) -> int:
    _emit(await router.category_stats())
    return 0


async def _cmd_cache_stats(args: argparse.Namespace, router: Any) -> int:
    _emit(router.cache_stats())
    return 0


async def _cmd_invalidate(args: argparse.Namespace, router: Any) -> int:
    await router.invalidate_all_caches()
    _emit({"invalidated": True})
    return 0


def _read_records(path: Path) -> list[dict[str, Any]]:
    """Read a JSON array, or one JSON object per line."""
    text = path.read_text(encoding="utf-8")
    if text.lstrip().startswith("["):
        return json.loads(text)
    return [json.loads(line) for line in text.splitlines() if line.strip()]


def _emit(value: Any) -> None:
    """Print a result as JSON on stdout."""
    from kbroute.cache.tiered_cache import to_jsonable

    print(json.dumps(to_jsonable(value), indent=2, ensure_ascii=False))


def _setup_logging(settings: Any, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from kbroute.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
