"""
Command-line interface for SKU catalog operations.

Lets operators allocate master data codes, resolve labels to master data, browse a
family's sub-families and fix row sequences without the admin console.

Examples:
    sku-catalog next-code brand BRD00A BRD00B
    sku-catalog --url http://localhost:8000 --token $TOKEN resolve color "space gray"
    sku-catalog --token $TOKEN children 665f1c --page 2 --search pro
    sku-catalog --token $TOKEN set-sequence 665f1d 3 --parent 665f1c
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from sku_catalog.clients.catalog_api import CatalogApiClient
from sku_catalog.config import settings
from sku_catalog.exceptions import CatalogError
from sku_catalog.managers.logging_manager import get_logger
from sku_catalog.models.reference_models import ReferenceType
from sku_catalog.services.child_cache import ChildCollectionCache
from sku_catalog.services.reference_resolver import ReferenceResolver
from sku_catalog.services.sequence_editor import SequenceEditor
from sku_catalog.utils.code_allocator import allocate_code

logger = get_logger(prefix="[CatalogCLI]")


class CatalogCLI:
    """CLI tool for SKU catalog operations."""

    def __init__(self, base_url: Optional[str] = None, api_token: Optional[str] = None):
        """
        Initialize catalog CLI.

        Args:
            base_url: Admin API origin (defaults to `settings.API_BASE_URL`)
            api_token: API token for authentication
        """
        origin = (base_url or settings.API_BASE_URL).rstrip("/")
        self.admin_root = f"{origin}/api/{settings.ADMIN_ROUTE}"
        self.api_token = api_token

    def _client(self) -> CatalogApiClient:
        return CatalogApiClient(base_url=self.admin_root, api_token=self.api_token)

    def next_code(self, ref_type: ReferenceType, codes: List[str]) -> bool:
        """Print the code that follows `codes` for the type's prefix (no network access)."""
        try:
            print(allocate_code(ref_type.code_prefix, codes))
            return True
        except CatalogError as e:
            logger.error(f"Allocation failed: {e}")
            return False

    async def remote_next_code(self, ref_type: ReferenceType) -> bool:
        """Print the next code for a type based on the codes currently stored."""
        try:
            async with self._client() as api:
                resolver = ReferenceResolver(api)
                await resolver.refresh(ref_type)
                print(allocate_code(ref_type.code_prefix, resolver.known_codes(ref_type)))
            return True
        except CatalogError as e:
            logger.error(f"Allocation failed: {e}")
            return False

    async def resolve(self, ref_type: ReferenceType, label: str) -> bool:
        """Resolve `label` to a master data id, creating the entity if needed."""
        try:
            async with self._client() as api:
                resolver = ReferenceResolver(api)
                entity_id = await resolver.resolve(ref_type, label)
            if entity_id is None:
                logger.error("Label is blank")
                return False
            print(entity_id)
            return True
        except CatalogError as e:
            logger.error(f"Resolve failed: {e}")
            return False

    async def children(self, family_id: str, page: int, search: Optional[str]) -> bool:
        """Print one page of a family's sub-families, ordered by sequence."""
        failures: List[CatalogError] = []
        async with self._client() as api:
            cache = ChildCollectionCache(
                api, debounce_seconds=0, on_fetch_error=lambda _, e: failures.append(e)
            )
            if search or page > 1:
                view = await cache.set_page(family_id, page, search=search)
            else:
                view = await cache.expand(family_id)
        if view is None or failures:
            return False

        print(f"Page {view.current_page}/{view.total_pages} ({view.total_count} sub-families)")
        for item in view.items:
            print(f"{item.sequence:>4}  {item.code or '-':<12} {item.name or '-'}  [{item.id}]")
        return True

    async def set_sequence(self, record_id: str, sequence: str, parent_id: Optional[str]) -> bool:
        """Set the sequence of a family, or of a sub-family when `parent_id` is given."""
        try:
            async with self._client() as api:
                if parent_id:
                    async def update(rid: str, value: int) -> None:
                        await api.update_sub_family_sequence(parent_id, rid, value)
                    editor = SequenceEditor(update)
                else:
                    editor = SequenceEditor(api.update_family_sequence)
                editor.begin(record_id, 1)
                editor.change(record_id, sequence)
                committed = await editor.commit(record_id)
        except CatalogError as e:
            logger.error(f"Sequence update failed: {e}")
            return False
        if committed is None:
            logger.error(f"Invalid sequence '{sequence}': expected a whole number of 1 or more")
            return False
        print(committed)
        return True


def _reference_type(value: str) -> ReferenceType:
    try:
        return ReferenceType(value.replace("-", "_"))
    except ValueError:
        choices = ", ".join(t.value for t in ReferenceType)
        raise argparse.ArgumentTypeError(f"unknown type '{value}' (choose from {choices})")


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="SKU Catalog CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--url",
        default=None,
        help=f"Admin API origin (default: {settings.API_BASE_URL})",
    )
    parser.add_argument(
        "--token",
        default=None,
        help="API token for authentication",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Next code command
    next_code_parser = subparsers.add_parser("next-code", help="Allocate the next master data code")
    next_code_parser.add_argument("type", type=_reference_type, help="Master data type, e.g. brand")
    next_code_parser.add_argument("codes", nargs="*", help="Existing codes (offline mode)")
    next_code_parser.add_argument(
        "--from-api",
        action="store_true",
        help="Read existing codes from the admin API instead of the command line",
    )

    # Resolve command
    resolve_parser = subparsers.add_parser("resolve", help="Find or create master data by label")
    resolve_parser.add_argument("type", type=_reference_type, help="Master data type, e.g. color")
    resolve_parser.add_argument("label", help="Free-text label")

    # Children command
    children_parser = subparsers.add_parser("children", help="List sub-families of a family")
    children_parser.add_argument("family_id", help="SKU family id")
    children_parser.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
    children_parser.add_argument("--search", default=None, help="Search text")

    # Set sequence command
    sequence_parser = subparsers.add_parser("set-sequence", help="Change a row's sequence")
    sequence_parser.add_argument("record_id", help="Family or sub-family id")
    sequence_parser.add_argument("sequence", help="New sequence (1 or higher)")
    sequence_parser.add_argument("--parent", default=None, help="Owning family id for sub-family rows")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    cli = CatalogCLI(base_url=args.url, api_token=args.token)

    # Execute command
    if args.command == "next-code":
        if args.from_api:
            success = asyncio.run(cli.remote_next_code(args.type))
        else:
            success = cli.next_code(args.type, args.codes)
    elif args.command == "resolve":
        success = asyncio.run(cli.resolve(args.type, args.label))
    elif args.command == "children":
        success = asyncio.run(cli.children(args.family_id, args.page, args.search))
    elif args.command == "set-sequence":
        success = asyncio.run(cli.set_sequence(args.record_id, args.sequence, args.parent))
    else:
        parser.print_help()
        sys.exit(1)

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
