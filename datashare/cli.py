"""
Command line access to the contract - invoke, query, or serve the HTTP API.
"""

import argparse
import sys

from .core.config import API_HOST, API_PORT, get_ledger, validate_config
from .core.contract import FUNCTIONS, invoke
from .core.errors import LedgerError
from .util.logging import logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="datashare", description="Data sharing ledger contract")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in [
        ("invoke", "Run a contract function and commit its writes"),
        ("query", "Run a contract function without committing"),
    ]:
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("function", help=f"One of: {', '.join(sorted(FUNCTIONS))}")
        sub.add_argument("args", nargs="*", help="Positional string arguments")

    serve = subparsers.add_parser("serve", help="Serve the HTTP API with uvicorn")
    serve.add_argument("--host", default=API_HOST, help=f"Bind address (default: {API_HOST})")
    serve.add_argument("--port", type=int, default=API_PORT, help=f"Port (default: {API_PORT})")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")

    return parser


def run_function(function: str, args: list, commit: bool) -> int:
    """Run one invocation against the configured ledger and print its outcome."""
    try:
        ledger = get_ledger()
    except LedgerError as e:
        print(f"❌ ERROR: Ledger unavailable: {e}", file=sys.stderr)
        return 1

    result = invoke(ledger, function, args, commit=commit)
    if not result.ok:
        print(f"❌ {result.error}: {result.message}", file=sys.stderr)
        return 1

    if result.payload:
        print(result.payload.decode("utf-8", errors="replace"))
    else:
        print("✅ OK")
    return 0


def serve(host: str, port: int, reload: bool = False) -> int:
    import uvicorn

    issues = validate_config()
    if issues:
        for issue in issues:
            print(f"❌ Config: {issue}", file=sys.stderr)
        return 1

    logger.info(f"Starting data sharing ledger API on {host}:{port}")
    uvicorn.run("datashare.api.main:app", host=host, port=port, reload=reload)
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        return serve(args.host, args.port, args.reload)
    return run_function(args.function, args.args, commit=args.command == "invoke")


if __name__ == "__main__":
    sys.exit(main())
