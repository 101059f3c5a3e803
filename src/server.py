"""Protean Engine runner for the marketplace domains.

Starts Engine workers that process events asynchronously, so the inventory
domain picks up variant combinations and quantity changes published by the
catalogue domain, and the catalogue follows stock totals adjusted in the
ledger.

Usage:
    python src/server.py                     # Run all domain engines
    python src/server.py --domain inventory  # Run only the inventory engine
"""

import argparse
import asyncio

from protean.server.engine import Engine

DOMAIN_NAMES = ["catalogue", "inventory", "ordering"]


def _get_domain(name):
    """Import and initialize a domain by name."""
    if name == "catalogue":
        from catalogue.domain import catalogue as domain
    elif name == "inventory":
        from inventory.domain import inventory as domain
    elif name == "ordering":
        from ordering.domain import ordering as domain
    else:
        raise ValueError(f"Unknown domain: {name}")

    domain.init()
    return domain


async def run(domain_names):
    engines = [Engine(_get_domain(name)) for name in domain_names]
    await asyncio.gather(*(engine.run() for engine in engines))


def main():
    parser = argparse.ArgumentParser(description="Marketstock Engine runner")
    parser.add_argument(
        "--domain",
        choices=DOMAIN_NAMES,
        help="Run a single domain engine (default: run all)",
    )
    args = parser.parse_args()

    domain_names = [args.domain] if args.domain else DOMAIN_NAMES

    asyncio.run(run(domain_names))


if __name__ == "__main__":
    main()
