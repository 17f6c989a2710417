"""
Command-line interface for the shipment ledger service.

Provides CLI commands for service management:
- init-db: Create the mirror database schema
- run: Start the API server
- show-config: Print the effective configuration

Usage:
    shipment-ledger init-db
    shipment-ledger run [--host HOST] [--port PORT]
    shipment-ledger show-config

Environment Variables:
    SHIP_HOST: Host to bind the API server (default: 0.0.0.0)
    SHIP_PORT: Port for the API server (default: 5001)
    SHIP_CONTRACT_ADDRESS: Deployed shipment contract address
    SHIP_MIRROR_DB_PATH: Mirror database path (default: data/shipments.db)
"""

import argparse
import sys


def cmd_init_db(args: argparse.Namespace) -> int:
    """
    Create the mirror database schema.

    Returns:
        0 on success, 1 on error
    """
    from shipment_ledger.config import config
    from shipment_ledger.db.errors import MirrorError
    from shipment_ledger.db.mirror import MirrorStore

    store = MirrorStore.from_settings(config.mirror)
    try:
        store.init_schema()
    except MirrorError as e:
        print(f"Error initializing mirror database: {e}", file=sys.stderr)
        return 1
    print(f"Mirror database initialized at {store.db_path}")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """
    Run the API server.

    The ledger binding is built before the server starts.  A missing contract
    address only logs a warning (ledger endpoints answer 503); an invalid one
    stops startup.

    Returns:
        0 on clean shutdown, 1 on startup error
    """
    from shipment_ledger.api.server import start_server
    from shipment_ledger.ledger.errors import LedgerConfigurationError

    try:
        start_server(host=getattr(args, "host", None), port=getattr(args, "port", None))
    except LedgerConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nShutting down...")
    return 0


def cmd_show_config(args: argparse.Namespace) -> int:
    """Print the effective configuration."""
    from shipment_ledger.config import print_config_summary

    print_config_summary()
    return 0


def main() -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parser = argparse.ArgumentParser(
        prog="shipment-ledger",
        description="Shipment ledger sync service",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    init_parser = subparsers.add_parser("init-db", help="Create the mirror database schema")
    init_parser.set_defaults(func=cmd_init_db)

    run_parser = subparsers.add_parser("run", help="Start the API server")
    run_parser.add_argument("--host", type=str, default=None, help="Host interface to bind")
    run_parser.add_argument("--port", type=int, default=None, help="Port for the API server")
    run_parser.set_defaults(func=cmd_run)

    config_parser = subparsers.add_parser("show-config", help="Print the effective configuration")
    config_parser.set_defaults(func=cmd_show_config)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
