"""Protean Engine runner for the trust domain.

Starts the Engine workers that process events asynchronously when the
domain runs with ``event_processing = "async"`` (the production overlay):
- OutboxProcessor: polls the outbox table, publishes events to Redis Streams
- StreamSubscriptions: reads Redis Streams, invokes the rating projector,
  the analytics ledger handlers and the webhook handler

Usage:
    PROTEAN_ENV=production python src/server.py
"""

import argparse
import asyncio

import structlog
from protean.server.engine import Engine

logger = structlog.get_logger(__name__)


def build_engine():
    from trust.domain import trust

    trust.init()
    return Engine(trust)


async def run():
    engine = build_engine()
    logger.info("Starting trust engine")
    await engine.run()


def main():
    parser = argparse.ArgumentParser(description="Review Trust Engine runner")
    parser.parse_args()

    asyncio.run(run())


if __name__ == "__main__":
    main()
