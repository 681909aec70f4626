"""Protean Engine runner for the marketplace domain.

With ``PROTEAN_ENV=production`` events are processed asynchronously: the
Engine publishes outbox events to Redis Streams and runs the projectors
(transaction and payout records) from there. In development and tests the
projectors run inline and this process is not needed.

Usage:
    PROTEAN_ENV=production python src/server.py
"""

import argparse

from protean.server.engine import Engine


def main():
    parser = argparse.ArgumentParser(description="MultiVend Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Process the pending events once and exit",
    )
    args = parser.parse_args()

    from marketplace.domain import marketplace
    from marketplace.utils.logging import configure_logging

    configure_logging()
    marketplace.init()

    # Engine.run() owns its event loop and blocks until shutdown
    Engine(marketplace, test_mode=args.test_mode).run()


if __name__ == "__main__":
    main()
