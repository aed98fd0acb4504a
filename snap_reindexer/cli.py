"""Operator command line for the reindex pipeline."""

import argparse
import asyncio
import json
import sys
from typing import Any, Awaitable, Callable, List, Optional

from ._queue import BaseWorkQueue, create_work_queue
from ._utils import configure_logging, logger
from .bootstrap import clear_topics, inject, prime, queue_stats, seed_backlog
from .cluster import ClusterClient
from .config import ReindexerConfig
from .exceptions import SnapReindexerError
from .reindexer import ReindexWorker
from .worker import CONTROL_SIGNALS, run_worker, send_control_signal


async def _with_clients(
    config: ReindexerConfig,
    action: Callable[[ClusterClient, BaseWorkQueue], Awaitable[Any]],
) -> Any:
    cluster = ClusterClient(config.cluster)
    queue = create_work_queue("redis", config.queue)
    try:
        return await action(cluster, queue)
    finally:
        await queue.close()
        await cluster.close()


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


async def _cmd_seed(args, config: ReindexerConfig) -> int:
    records = await _with_clients(config, lambda cluster, queue: seed_backlog(cluster, queue, config))
    print(f"Pushed {len(records)} snapshots onto the backlog")
    return 0


async def _cmd_status(args, config: ReindexerConfig) -> int:
    stats = await _with_clients(config, lambda cluster, queue: queue_stats(queue))
    _print_json(stats.model_dump())
    return 0


async def _cmd_prime(args, config: ReindexerConfig) -> int:
    jobs = await _with_clients(config, lambda cluster, queue: prime(queue, args.count))
    _print_json([job.model_dump(mode="json") for job in jobs])
    return 0


async def _cmd_inject(args, config: ReindexerConfig) -> int:
    job = await _with_clients(
        config,
        lambda cluster, queue: inject(cluster, queue, args.snapshot, args.index, restore=args.restore),
    )
    _print_json(job.model_dump(mode="json"))
    return 0


async def _cmd_clear(args, config: ReindexerConfig) -> int:
    stats = await _with_clients(config, lambda cluster, queue: clear_topics(queue))
    _print_json(stats.model_dump())
    return 0


async def _cmd_worker(args, config: ReindexerConfig) -> int:
    await run_worker(args.command, config, pidfile=args.pidfile)
    return 0


async def _cmd_test_reindex(args, config: ReindexerConfig) -> int:
    cluster = ClusterClient(config.cluster)
    try:
        status = await ReindexWorker(config, cluster).test_reindex(args.source, args.target)
    finally:
        await cluster.close()
    _print_json(status.model_dump())
    return 0


async def _cmd_signal(args, config: ReindexerConfig) -> int:
    for pid in args.pids:
        send_control_signal(pid, args.action)
    return 0


COMMANDS = {
    "seed": _cmd_seed,
    "status": _cmd_status,
    "prime": _cmd_prime,
    "inject": _cmd_inject,
    "clear": _cmd_clear,
    "manager": _cmd_worker,
    "reindexer": _cmd_worker,
    "test-reindex": _cmd_test_reindex,
    "signal": _cmd_signal,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snap-reindexer",
        description="Reindex every snapshot in an Elasticsearch archive, one index at a time.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("seed", help="populate the backlog from the snapshot repository")
    sub.add_parser("status", help="show topic depths, backlog size and failed jobs")

    prime_parser = sub.add_parser("prime", help="start N restore/reindex cycles from the backlog")
    prime_parser.add_argument("count", type=int, help="number of reindex workers to feed")

    inject_parser = sub.add_parser("inject", help="resume one snapshot/index pair after a crash")
    inject_parser.add_argument("snapshot")
    inject_parser.add_argument("index")
    restore_group = inject_parser.add_mutually_exclusive_group()
    restore_group.add_argument("--restore", dest="restore", action="store_true", default=None,
                               help="restore from the snapshot even if the working copy exists")
    restore_group.add_argument("--no-restore", dest="restore", action="store_false",
                               help="reindex from the existing working copy")
    inject_parser.set_defaults(restore=None)

    sub.add_parser("clear", help="empty both job topics (the backlog is kept)")

    for role in ("manager", "reindexer"):
        worker_parser = sub.add_parser(role, help=f"run a {role} worker process")
        worker_parser.add_argument("--pidfile", default=None)

    test_parser = sub.add_parser("test-reindex", help="mutate and reindex SOURCE into TARGET, no queues")
    test_parser.add_argument("source")
    test_parser.add_argument("target")

    signal_parser = sub.add_parser("signal", help="pause, resume or stop worker processes")
    signal_parser.add_argument("action", choices=sorted(CONTROL_SIGNALS))
    signal_parser.add_argument("pids", type=int, nargs="+")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = ReindexerConfig.from_env()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1
    configure_logging(config.log_level, config.log_file)
    try:
        return asyncio.run(COMMANDS[args.command](args, config))
    except SnapReindexerError as e:
        logger.error(str(e))
        return 1
    except (ProcessLookupError, PermissionError) as e:
        logger.error(f"Could not signal worker: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
