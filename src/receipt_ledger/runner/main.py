"""
CLI main entry point.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml

from ..config import Config, ConfigValidationError, create_default_config, load_config
from ..errors import ReceiptError
from ..pipeline import ReceiptPipeline, ReceiptProcessor
from ..schemas.receipt import EXPENSE_CATEGORIES, ExtractedReceiptData, RawImage
from ..state_store import ReceiptStore

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_cli() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="receipt-ledger",
        description="Extract expense data from photographed receipts",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # init command
    subparsers.add_parser("init", help="Write a default config file")

    # extract command
    extract_parser = subparsers.add_parser("extract", help="Extract data from receipt images")
    extract_parser.add_argument("images", nargs="+", type=Path, help="Receipt image file(s)")
    extract_parser.add_argument(
        "--category",
        choices=EXPENSE_CATEGORIES,
        default=None,
        help="Category when no keyword matches (default: from config)",
    )
    extract_parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON",
    )

    # parse-text command
    text_parser = subparsers.add_parser(
        "parse-text", help="Extract data from already recognized receipt text"
    )
    text_parser.add_argument("file", type=str, help="Text file, or - for stdin")
    text_parser.add_argument("--category", choices=EXPENSE_CATEGORIES, default=None)

    # process command
    process_parser = subparsers.add_parser(
        "process", help="Extract a receipt and record it in the state database"
    )
    process_parser.add_argument("image", type=Path, help="Receipt image file")
    process_parser.add_argument("--owner", required=True, help="Owner of the receipt")
    process_parser.add_argument("--image-url", default=None, help="Where the image is stored")
    process_parser.add_argument(
        "--category",
        choices=EXPENSE_CATEGORIES,
        default=None,
        help="Category of the saved expense, overriding the suggested one "
        "(requires --save-expense)",
    )
    process_parser.add_argument(
        "--save-expense",
        action="store_true",
        help="Save the extraction as an expense",
    )

    # expenses command
    expenses_parser = subparsers.add_parser("expenses", help="List saved expenses")
    expenses_parser.add_argument("--owner", required=True, help="Owner of the expenses")
    expenses_parser.add_argument("--category", choices=EXPENSE_CATEGORIES, default=None)

    return parser


def _print_result(data: ExtractedReceiptData, indent: str = "     ") -> None:
    print(f"{indent}→ Merchant: {data.merchant or '-'}")
    print(f"{indent}→ Total: {data.total or '-'}")
    print(f"{indent}→ Date: {data.date}")
    print(f"{indent}→ Category: {data.category}")


def cmd_init(config_path: Path) -> int:
    """Write a default config file unless one exists."""
    if config_path.exists():
        print(f"❌ Config already exists: {config_path}")
        return 1
    create_default_config(config_path)
    print(f"✓ Wrote default config to {config_path}")
    return 0


def cmd_extract(
    config: Config, images: list[Path], category: str | None, as_json: bool
) -> int:
    """Extract receipts and print the results."""
    pipeline = ReceiptPipeline.from_config(config)
    default_category = category or config.extraction.default_category

    raw_images = []
    for path in images:
        try:
            raw_images.append(RawImage.from_path(path))
        except OSError as e:
            print(f"❌ Cannot read {path}: {e}")
            return 1

    outcomes = pipeline.extract_many(
        raw_images, default_category=default_category, max_workers=config.max_workers
    )

    failed = 0
    json_results = []
    for path, outcome in zip(images, outcomes):
        if as_json:
            entry = {"file": str(path)}
            if outcome.ok:
                entry["result"] = outcome.result.to_dict()
            else:
                entry["error"] = str(outcome.error)
            json_results.append(entry)
        else:
            print(f"  🧾 {path}")
            if outcome.ok:
                _print_result(outcome.result)
            else:
                print(f"     ❌ Error: {outcome.error}")
        if not outcome.ok:
            failed += 1

    if as_json:
        print(json.dumps(json_results, indent=2, ensure_ascii=False))

    return 1 if failed else 0


def cmd_parse_text(config: Config, source: str, category: str | None) -> int:
    """Run the post-recognition stages on a text file."""
    try:
        text = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    except OSError as e:
        print(f"❌ Cannot read {source}: {e}")
        return 1

    pipeline = ReceiptPipeline.from_config(config)
    data = pipeline.extract_text(text, category or config.extraction.default_category)
    print(json.dumps(data.to_dict(), indent=2, ensure_ascii=False))
    return 0


def cmd_process(
    config: Config,
    image: Path,
    owner: str,
    image_url: str | None,
    category: str | None,
    save_expense: bool,
) -> int:
    """Extract one receipt and record it."""
    if category and not save_expense:
        print("❌ --category only applies together with --save-expense")
        return 1

    store = ReceiptStore(config.state_db_path)
    processor = ReceiptProcessor(ReceiptPipeline.from_config(config), store)

    try:
        raw = RawImage.from_path(image)
    except OSError as e:
        print(f"❌ Cannot read {image}: {e}")
        return 1

    print(f"🧾 Processing {image}...")
    try:
        processed = processor.process(
            raw,
            owner=owner,
            image_url=image_url,
            default_category=config.extraction.default_category,
        )
    except ReceiptError as e:
        print(f"❌ Error: {e}")
        return 1

    print(f"  ✓ Receipt {processed.receipt_id} completed")
    _print_result(processed.data)

    if save_expense:
        expense = processor.save_expense(owner, processed, category=category)
        print(f"  ✓ Saved expense {expense.id}: {expense.amount} ({expense.category})")

    return 0


def cmd_expenses(config: Config, owner: str, category: str | None) -> int:
    """List an owner's expenses."""
    store = ReceiptStore(config.state_db_path)
    expenses = store.list_expenses(owner, category=category)

    if not expenses:
        print("No expenses found")
        return 0

    for expense in expenses:
        print(
            f"  [{expense.id}] {expense.date}  {expense.amount:>10}  "
            f"{expense.category:<18} {expense.description}"
        )
    print(f"\n✓ {len(expenses)} expense(s)")
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_cli()
    parsed = parser.parse_args(args)

    setup_logging(parsed.verbose)

    if not parsed.command:
        parser.print_help()
        return 1

    if parsed.command == "init":
        return cmd_init(parsed.config)

    # Load config
    try:
        config = load_config(parsed.config)
    except (ConfigValidationError, OSError, ValueError, yaml.YAMLError) as e:
        print(f"❌ Failed to load config: {e}")
        return 1

    errors = config.validate()
    if errors:
        for error in errors:
            print(f"❌ Config error: {error}")
        return 1

    # Route to command
    try:
        if parsed.command == "extract":
            return cmd_extract(config, parsed.images, parsed.category, parsed.json)
        elif parsed.command == "parse-text":
            return cmd_parse_text(config, parsed.file, parsed.category)
        elif parsed.command == "process":
            return cmd_process(
                config,
                parsed.image,
                owner=parsed.owner,
                image_url=parsed.image_url,
                category=parsed.category,
                save_expense=parsed.save_expense,
            )
        elif parsed.command == "expenses":
            return cmd_expenses(config, parsed.owner, parsed.category)
    except ConfigValidationError as e:
        print(f"❌ Config error: {e}")
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
