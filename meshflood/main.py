"""
meshflood Simulation Entry Point

Runs a simulated flooding mesh and reports per-node statistics:
- Message counters (sent, received, relayed, duplicates, drops)
- Routing table contents (--routes)
- Machine-readable output (--json)
"""

import sys
import json
import logging
import argparse
from pathlib import Path
from typing import Dict, List, Optional

from . import __version__
from .config import Config, DEFAULT_CONFIG_PATH, TOPOLOGIES
from .sim.network import Network


logger = logging.getLogger("meshflood")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(config: Config, verbose: bool = False) -> None:
    """Configure root logging from config and flags."""
    level = logging.DEBUG if verbose else getattr(logging, config.log_level, logging.INFO)

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


def print_stats(stats: Dict[str, dict]) -> None:
    """Print the per-node statistics table."""
    print(f"Node Statistics ({len(stats)} nodes)")
    print("=" * 78)
    print(
        f"{'Node':<8} {'Sent':>6} {'Recv':>6} {'Relay':>6} {'Dup':>6} "
        f"{'TTL':>5} {'Loop':>5} {'Supp':>5} {'Bad':>5} {'Routes':>7} {'Cache':>6}"
    )
    print("-" * 78)

    for address, s in stats.items():
        print(
            f"{address:<8} {s['messages_sent']:>6} {s['messages_received']:>6} "
            f"{s['messages_relayed']:>6} {s['duplicates']:>6} {s['ttl_expired']:>5} "
            f"{s['loops']:>5} {s['suppressed']:>5} {s['malformed']:>5} "
            f"{s['routing_table_size']:>7} {s['cache_size']:>6}"
        )


def print_routes(network: Network) -> None:
    """Print every node's routing table."""
    for node in network.nodes:
        entries = node.routing_table.get_all_entries()
        print()
        print(f"Routing Table {node.address} ({len(entries)} entries)")
        print("=" * 56)

        if not entries:
            print("No routes in table")
            continue

        print(f"{'Destination':<14} {'Next Hop':<14} {'Hops':<6} {'Updated':>10}")
        print("-" * 56)
        for entry in entries:
            print(
                f"{entry.destination:<14} {entry.next_hop:<14} "
                f"{entry.hop_count:<6} {entry.last_updated:>10.3f}"
            )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Flooding mesh simulator")
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Configuration file path",
    )
    parser.add_argument(
        "-d", "--duration",
        type=float,
        help="Simulated time to run (overrides config)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Random seed (overrides config)",
    )
    parser.add_argument(
        "-n", "--nodes",
        type=int,
        help="Number of generated nodes (overrides config)",
    )
    parser.add_argument(
        "-t", "--topology",
        choices=TOPOLOGIES,
        help="Generated topology (overrides config)",
    )
    parser.add_argument(
        "--routes",
        action="store_true",
        help="Print routing tables after the run",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print statistics as JSON",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"meshflood {__version__}",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    # Load configuration
    try:
        config = Config.load(args.config)
    except ValueError as e:
        logging.basicConfig(format=LOG_FORMAT)
        logger.error(f"Configuration error: {e}")
        return 1

    if args.duration is not None:
        config.simulation.duration = args.duration
    if args.seed is not None:
        config.simulation.seed = args.seed
    if args.nodes is not None:
        config.simulation.node_count = args.nodes
    if args.topology is not None:
        config.simulation.topology = args.topology

    setup_logging(config, args.verbose)

    try:
        config.validate()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    with Network(config) as network:
        network.run()
        stats = network.get_stats()

        if args.json:
            print(json.dumps({
                "time": network.scheduler.now,
                "nodes": stats,
                "medium": network.medium.get_statistics(),
                "missing_routes": network.missing_routes(),
            }, indent=2))
        else:
            print_stats(stats)
            if args.routes:
                print_routes(network)

    return 0


if __name__ == "__main__":
    sys.exit(main())
