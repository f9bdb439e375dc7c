# Main Entry Point
#
# Runs the Secure Vault API server. Configuration comes from the environment
# (or a .env file); missing DATABASE_URL / JWT_SECRET aborts startup.

import argparse
import sys

from . import __version__
from .core import ConfigurationError, EventSeverity, EventType, get_audit_logger


def main(argv=None):
    """Main entry point for Secure Vault."""
    parser = argparse.ArgumentParser(
        prog="secure-vault",
        description="Secure Vault - personal password vault API server",
    )

    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)"
    )

    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to listen on (default: 8000)"
    )

    parser.add_argument(
        "--generate-password",
        type=int,
        metavar="LENGTH",
        nargs="?",
        const=16,
        help="Print a random password (8-32 characters, default 16) and exit"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Secure Vault v{__version__}"
    )

    args = parser.parse_args(argv)

    if args.generate_password is not None:
        from .vault import generate_password
        try:
            print(generate_password(args.generate_password))
        except ValueError as e:
            parser.error(str(e))
        return

    from .api.main import start_api_server

    try:
        start_api_server(host=args.host, port=args.port)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)
    except KeyboardInterrupt:
        print("\nShutting down...")
    except Exception as e:
        print(f"\nError: {e}", file=sys.stderr)
        get_audit_logger().log_event(
            event_type=EventType.SYSTEM_STOP,
            severity=EventSeverity.CRITICAL,
            message=f"Secure Vault server crashed: {type(e).__name__}"
        )
        sys.exit(1)


if __name__ == "__main__":
    main()
