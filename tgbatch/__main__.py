"""
Run a message batch against the Telegram Bot API.

Usage:
    # Send every item, abort on the first failure
    python -m tgbatch batch.json

    # Record failures and keep going
    python -m tgbatch batch.json --continue-on-fail

Environment:
    TELEGRAM_BOT_TOKEN: Bot token (required)
    TELEGRAM_API_BASE:  API base URL (default https://api.telegram.org)

Output:
    One JSON array of result records on stdout; logs go to stderr.
"""
import argparse
import asyncio
import json
import sys

from tgbatch.config import settings, validate_or_warn
from tgbatch.core.errors import PipelineError
from tgbatch.infra.logging_config import get_logger, setup_logging
from tgbatch.infra.metrics import get_metrics_collector
from tgbatch.runner import load_batch_file, run_batch
from tgbatch.transport.http_client import close_all_sessions

logger = get_logger("tgbatch")


async def _run(args: argparse.Namespace) -> int:
    parameters, items = load_batch_file(args.batch_file)
    try:
        records = await run_batch(items, parameters, continue_on_fail=args.continue_on_fail)
    except PipelineError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await close_all_sessions()

    json.dump([r.to_dict() for r in records], sys.stdout, indent=2, ensure_ascii=False)
    print()

    if settings.enable_metrics:
        logger.info("Metrics: %s", json.dumps(get_metrics_collector().snapshot()))
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="tgbatch",
        description="Send or edit Telegram messages for every item of a batch file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("batch_file", help="JSON file with 'parameters' and 'items'")
    parser.add_argument(
        "--continue-on-fail",
        action=argparse.BooleanOptionalAction,
        default=settings.continue_on_fail,
        help="Record failed items instead of aborting the batch",
    )
    parser.add_argument("--log-level", default=settings.log_level, help="Log level (default from LOG_LEVEL)")
    parser.add_argument(
        "--json-logs",
        action=argparse.BooleanOptionalAction,
        default=settings.log_json,
        help="Emit JSON log lines (default from LOG_JSON)",
    )

    args = parser.parse_args()

    setup_logging(args.log_level.upper(), use_json=args.json_logs)
    try:
        validate_or_warn(settings)
    except RuntimeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    try:
        sys.exit(asyncio.run(_run(args)))
    except (OSError, PipelineError) as exc:
        print(f"Error: cannot load {args.batch_file}: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
