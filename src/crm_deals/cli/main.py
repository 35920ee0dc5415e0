"""Main CLI entry point."""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional


def _default_db() -> Path:
    return Path(os.environ.get("CRM_DEALS_DB", "crm_deals.db"))


def main(argv: Optional[list[str]] = None) -> None:
    """Parse args and dispatch to subcommands."""
    parser = argparse.ArgumentParser(prog="crm-deals", description="Normalize CRM deals into one pipeline schema")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log stage decisions and batch details")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # transform
    transform_parser = subparsers.add_parser("transform", help="Transform a raw CRM export (JSON) into deals")
    transform_parser.add_argument("--platform", required=True, help="Source CRM (pipedrive, salesforce, hubspot, zoho, folk)")
    transform_parser.add_argument("--input", type=Path, required=True, help="Raw payload JSON file")
    transform_parser.add_argument("--settings", type=Path, default=None, help="Path to settings YAML")
    transform_parser.add_argument("--account-id", type=str, default=None, help="Owning account (overrides settings)")
    transform_parser.add_argument("--created-by", type=str, default=None, help="Acting user (overrides settings)")
    transform_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write {deals, dealContacts} JSON to file (default: stdout)",
    )
    transform_parser.add_argument(
        "--store",
        type=Path,
        default=None,
        metavar="DB_PATH",
        help="Also persist to SQLite store at given path",
    )
    transform_parser.add_argument("--display", action="store_true", help="Emit board-ready display deals instead")

    # fetch
    fetch_parser = subparsers.add_parser("fetch", help="Fetch deals from a CRM API and transform them")
    fetch_parser.add_argument("--platform", default=None, help="Source CRM (default: from settings)")
    fetch_parser.add_argument("--settings", type=Path, default=None, help="Path to settings YAML")
    fetch_parser.add_argument("--raw", action="store_true", help="Output the untransformed payload")
    fetch_parser.add_argument("--output", type=Path, default=None, help="Write JSON to file (default: stdout)")

    # import
    import_parser = subparsers.add_parser("import", help="Fetch, transform and store deals from a CRM")
    import_parser.add_argument("--platform", default=None, help="Source CRM (default: from settings)")
    import_parser.add_argument("--settings", type=Path, default=None, help="Path to settings YAML")
    import_parser.add_argument("--db", type=Path, default=None, help="Path to SQLite database")

    # store
    store_parser = subparsers.add_parser("store", help="Query the deal store")
    store_parser.add_argument("action", choices=["list", "count", "runs"], help="List deals, show counts or import runs")
    store_parser.add_argument("--db", type=Path, default=None, help="Path to SQLite database")
    store_parser.add_argument("--account-id", type=str, default=None, help="Filter by account")
    store_parser.add_argument("--stage", type=str, default=None, help="Filter by canonical stage")
    store_parser.add_argument("--display", action="store_true", help="List board-ready display deals")

    # platforms
    subparsers.add_parser("platforms", help="List supported CRM platforms")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s %(levelname)s: %(message)s",
    )

    from crm_deals.fetchers import FetchError
    from crm_deals.store import StoreError
    from crm_deals.transform import InvalidPayloadError, UnsupportedPlatformError

    try:
        if args.command == "transform":
            _run_transform(args)
        elif args.command == "fetch":
            _run_fetch(args)
        elif args.command == "import":
            _run_import(args)
        elif args.command == "store":
            _run_store(args)
        elif args.command == "platforms":
            _run_platforms(args)
        else:
            parser.print_help()
    except (UnsupportedPlatformError, InvalidPayloadError, FetchError, StoreError) as e:
        raise SystemExit(str(e))


def _load_settings(args: argparse.Namespace):
    from crm_deals.models.settings import ImportSettings

    settings = ImportSettings.from_yaml(args.settings) if args.settings else ImportSettings()
    updates = {}
    if getattr(args, "account_id", None):
        updates["account_id"] = args.account_id
    if getattr(args, "created_by", None):
        updates["created_by"] = args.created_by
    if getattr(args, "platform", None):
        updates["platform"] = args.platform
    return settings.model_copy(update=updates) if updates else settings


def _emit(data, output: Optional[Path], summary: str) -> None:
    text = json.dumps(data, indent=2, default=str)
    if output:
        output.write_text(text, encoding="utf-8")
        print(f"{summary} (wrote to {output})")
    else:
        print(text)


def _result_payload(result, display: bool):
    if not display:
        return result.to_json_dict()
    from crm_deals.formatting import to_display_deal

    by_deal: dict[str, list] = {}
    for contact in result.deal_contacts:
        by_deal.setdefault(contact.deal_id, []).append(contact.to_row())
    return [to_display_deal({**d.to_row(), "deal_contacts": by_deal.get(d.id, [])}) for d in result.deals]


def _run_transform(args: argparse.Namespace) -> None:
    """Run transform command."""
    from crm_deals.transform import transform_deals

    settings = _load_settings(args)
    try:
        raw = json.loads(args.input.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise SystemExit(f"Could not read {args.input}: {e}")

    result = transform_deals(raw, args.platform, settings.account_id, settings.created_by, settings=settings)

    if args.store is not None:
        from crm_deals.store import DealStore, insert_transformed_data

        deals, contacts = insert_transformed_data(result, DealStore(args.store))
        print(f"Store: {deals} deals, {contacts} contacts inserted", file=sys.stderr)

    _emit(
        _result_payload(result, args.display),
        args.output,
        f"Transformed {len(result.deals)} deals, {len(result.deal_contacts)} contacts",
    )


def _run_fetch(args: argparse.Namespace) -> None:
    """Run fetch command."""
    from crm_deals.fetchers import FetcherRegistry
    from crm_deals.pipeline import fetch_and_transform

    settings = _load_settings(args)
    if not settings.platform:
        raise SystemExit("fetch requires --platform or platform in settings")

    if args.raw:
        raw = FetcherRegistry.get(settings.platform, settings).fetch_raw()
        _emit(raw, args.output, f"Fetched raw {settings.platform} payload")
        return

    result = fetch_and_transform(settings)
    _emit(
        result.to_json_dict(),
        args.output,
        f"Fetched {len(result.deals)} deals, {len(result.deal_contacts)} contacts",
    )


def _run_import(args: argparse.Namespace) -> None:
    """Run import command."""
    from crm_deals.pipeline import run_import

    settings = _load_settings(args)
    if not settings.platform:
        raise SystemExit("import requires --platform or platform in settings")
    result = run_import(settings, db_path=args.db or _default_db())
    print(f"Imported {len(result.deals)} deals, {len(result.deal_contacts)} contacts from {settings.platform}")


def _run_store(args: argparse.Namespace) -> None:
    """Run store command."""
    from crm_deals.store import DealStore

    store = DealStore(args.db or _default_db())
    if args.action == "list":
        if args.display:
            from crm_deals.formatting import to_display_deal

            deals = store.get_deals_with_contacts(account_id=args.account_id)
            if args.stage:
                deals = [d for d in deals if d["stage"] == args.stage]
            print(json.dumps([to_display_deal(d) for d in deals], indent=2, default=str))
        else:
            deals = store.get_deals(account_id=args.account_id, stage=args.stage)
            print(json.dumps(deals, indent=2, default=str))
    elif args.action == "count":
        print(f"deals: {store.count('deals')}")
        print(f"deal_contacts: {store.count('deal_contacts')}")
    elif args.action == "runs":
        for run in store.get_runs():
            print(
                f"  #{run.id} {run.platform} [{run.status}] {run.started_at.isoformat()} "
                f"deals={run.deals_inserted} contacts={run.contacts_inserted}"
            )


def _run_platforms(args: argparse.Namespace) -> None:
    """Run platforms command."""
    from crm_deals.transformers import TransformerRegistry

    for name in TransformerRegistry.available_platforms():
        print(name)


if __name__ == "__main__":
    main()
