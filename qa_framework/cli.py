"""
Command-line utilities for the QA framework.

Inspect and validate configuration, generate fake test data, build the
end-of-run reports and send notifications outside of a test session.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from .core.config import Config
from .core.exceptions import ConfigurationError, QAFrameworkError
from .data.manager import RECORD_TYPES, TestDataManager
from .reporting.generator import ReportGenerator
from .reporting.notifications import Notifier


def _load_config(args: argparse.Namespace) -> Config:
    explicit = {}
    if getattr(args, "env", None):
        explicit["environment"] = args.env
    return Config.from_env(**explicit)


def cmd_config(args: argparse.Namespace) -> int:
    """Show (and optionally validate) the resolved configuration."""
    try:
        config = _load_config(args)
    except ConfigurationError as e:
        print(f"❌ {e.message}")
        for violation in e.violations:
            print(f"   • {violation}")
        return 1

    if args.json:
        print(json.dumps(config.to_dict(), indent=2, default=str))
    else:
        print(f"Environment: {config.environment}")
        for key, value in config.to_dict().items():
            if key != "environment":
                print(f"  {key}: {value}")

    if args.validate:
        try:
            config.validate()
        except ConfigurationError as e:
            print("❌ Configuration validation failed:")
            for violation in e.violations:
                print(f"   • {violation}")
            return 1
        print("✅ Configuration is valid")

    return 0


def cmd_generate_data(args: argparse.Namespace) -> int:
    """Generate fake records and write or print them."""
    try:
        config = _load_config(args)
        data_dir = Path(args.data_dir) if args.data_dir else config.data_dir
        manager = TestDataManager(data_dir, seed=args.seed)
        records = manager.generate(args.kind, args.count)
    except (QAFrameworkError, ValueError) as e:
        print(f"❌ {e}")
        return 1

    if args.output:
        path = manager.save(records, args.output, format=args.format)
        print(f"✅ Wrote {args.count} {args.kind} record(s) to {path}")
    else:
        items = records if isinstance(records, list) else [records]
        print(json.dumps([item.to_fixture() for item in items], indent=2, ensure_ascii=False))
    return 0


def cmd_report(args: argparse.Namespace) -> int:
    """Build the test summary, performance report and HTML summary."""
    try:
        config = _load_config(args)
        summary = ReportGenerator(config).generate()
    except (QAFrameworkError, OSError) as e:
        print(f"❌ Report generation failed: {e}")
        return 1

    if summary.results is None:
        print("⚠️  No runner results found; wrote an empty summary")
    else:
        results = summary.results
        print(
            f"📊 {results.total_tests} tests: {results.passed} passed, "
            f"{results.failed} failed, {results.errors} errors, {results.skipped} skipped"
        )
    print(f"📁 Reports written to {config.results_dir}")
    return 0


def cmd_notify(args: argparse.Namespace) -> int:
    """Send the last written summary to the configured channels."""
    try:
        config = _load_config(args)
        summary = ReportGenerator(config).load_summary()
    except (QAFrameworkError, ValueError) as e:
        print(f"❌ {e}")
        return 1

    if summary is None:
        print("❌ No test summary found; run 'qa-framework report' first")
        return 1

    outcomes = asyncio.run(Notifier(config).notify(summary))
    if not outcomes:
        print("⚠️  No notification channel configured")
        return 1

    for channel, delivered in outcomes.items():
        print(f"{'✅' if delivered else '❌'} {channel}")
    return 0 if all(outcomes.values()) else 1


def create_main_parser() -> argparse.ArgumentParser:
    """Create main CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="qa-framework",
        description="QA Framework - Playwright end-to-end and API test utilities",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  qa-framework config --validate
  qa-framework generate-data user --count 10 --output users.json
  qa-framework report
  qa-framework notify
        """,
    )
    parser.add_argument(
        "--env",
        choices=["development", "staging", "production"],
        help="Environment tier (defaults to TEST_ENV)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    config_parser = subparsers.add_parser("config", help="Show the resolved configuration")
    config_parser.add_argument("--validate", action="store_true", help="Validate the configuration")
    config_parser.add_argument("--json", action="store_true", help="Print as JSON")
    config_parser.set_defaults(func=cmd_config)

    data_parser = subparsers.add_parser("generate-data", help="Generate fake test data")
    data_parser.add_argument("kind", choices=sorted(RECORD_TYPES), help="Record kind")
    data_parser.add_argument("--count", "-n", type=int, default=1, help="Number of records")
    data_parser.add_argument("--output", "-o", help="File name inside the data directory")
    data_parser.add_argument("--format", choices=["json", "csv"], default="json", help="Output format")
    data_parser.add_argument("--seed", type=int, help="Seed for reproducible data")
    data_parser.add_argument("--data-dir", help="Override the data directory")
    data_parser.set_defaults(func=cmd_generate_data)

    report_parser = subparsers.add_parser("report", help="Generate run reports from JUnit results")
    report_parser.set_defaults(func=cmd_report)

    notify_parser = subparsers.add_parser("notify", help="Send the last run summary")
    notify_parser.set_defaults(func=cmd_notify)

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_main_parser()

    if args is None:
        args = sys.argv[1:]

    parsed_args = parser.parse_args(args)

    if not hasattr(parsed_args, "func"):
        parser.print_help()
        return 1

    return parsed_args.func(parsed_args)


if __name__ == "__main__":
    sys.exit(main())
