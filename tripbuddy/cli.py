"""
Admin commands for the offline cache.

Usage:
    tripbuddy-cache size
    tripbuddy-cache list --trip TRIP_ID
    tripbuddy-cache remove-document DOCUMENT_ID
    tripbuddy-cache remove-map REGION_ID
    tripbuddy-cache clear
"""

import argparse
import asyncio
import sys

from tripbuddy.database import init_db
from tripbuddy.logging_config import configure_logging
from tripbuddy.offline import OfflineCacheManager, format_bytes


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tripbuddy-cache",
        description="Inspect and manage the TripBuddy offline cache",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("size", help="Show cache size by category")

    list_parser = commands.add_parser("list", help="List cached documents and map regions")
    list_parser.add_argument("--trip", default=None, help="Only show items for this trip id")

    commands.add_parser("clear", help="Remove every cached document and map region")

    remove_doc = commands.add_parser("remove-document", help="Remove one cached document")
    remove_doc.add_argument("document_id")

    remove_map = commands.add_parser("remove-map", help="Remove one offline map region")
    remove_map.add_argument("region_id")

    return parser


def _print_summary(summary) -> None:
    print(f"Documents: {format_bytes(summary.documents)}")
    print(f"Maps:      {format_bytes(summary.maps)}")
    print(f"Total:     {summary.formatted}")


async def run(args: argparse.Namespace, cache: OfflineCacheManager) -> int:
    """Execute one parsed command against ``cache``."""
    if args.command == "size":
        _print_summary(await cache.refresh_cache_size())

    elif args.command == "list":
        documents = await cache.get_cached_documents(args.trip)
        regions = await cache.get_cached_map_regions(args.trip)
        print(f"Documents ({len(documents)}):")
        for doc in documents:
            print(f"  {doc.id}  {doc.file_name}  {format_bytes(doc.file_size_bytes)}  trip={doc.trip_id}")
        print(f"Map regions ({len(regions)}):")
        for region in regions:
            print(
                f"  {region.id}  {region.name}  {region.tile_count} tiles  "
                f"{format_bytes(region.size_bytes)}  trip={region.trip_id}"
            )

    elif args.command == "clear":
        summary = await cache.clear_cache()
        print("Cache cleared")
        _print_summary(summary)
        if summary.total:
            print("Some items could not be removed")
            return 1

    elif args.command == "remove-document":
        await cache.remove_document_from_cache(args.document_id)
        if await cache.is_document_cached(args.document_id):
            print(f"Could not remove document {args.document_id}")
            return 1
        print(f"Removed document {args.document_id}")

    elif args.command == "remove-map":
        await cache.remove_map_region(args.region_id)
        remaining = {region.id for region in await cache.get_cached_map_regions()}
        if args.region_id in remaining:
            print(f"Could not remove map region {args.region_id}")
            return 1
        print(f"Removed map region {args.region_id}")

    return 0


async def _main(args: argparse.Namespace) -> int:
    async with OfflineCacheManager.from_settings() as cache:
        return await run(args, cache)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging("DEBUG" if args.verbose else None)
    init_db()
    return asyncio.run(_main(args))


if __name__ == "__main__":
    sys.exit(main())
