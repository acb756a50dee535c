"""
Entry point for the updater-publish CLI application.
"""

import signal
import sys
from updater_publish.cli.main import app

EXIT_CODES = {signal.SIGINT: 130, signal.SIGTERM: 143}


def _exit_on_signal(signum, frame):
    if signum == signal.SIGINT:
        print("\n\n👋 Cancelled by user.")
    sys.exit(EXIT_CODES.get(signum, 1))


def main():
    """Main entry point."""
    for signum in EXIT_CODES:
        signal.signal(signum, _exit_on_signal)
    try:
        app()
    except Exception as e:
        print(f"\n❌ Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
