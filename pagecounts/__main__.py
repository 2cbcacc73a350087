"""Command-line driver for the page index.

Usage:
    # Parse a raw pagecount log and write a snapshot
    python -m pagecounts build data/pagecounts.tsv data/pagecounts.bin

    # Counters for one page over a day
    python -m pagecounts query data/pagecounts.bin 10_Cloverfield_Lane 20160626-00 20160626-23

    # Only the 3 earliest hours
    python -m pagecounts query data/pagecounts.bin 10_Cloverfield_Lane 20160626-00 20160626-23 --top-k 3

    # Dump the whole index, or one record
    python -m pagecounts dump data/pagecounts.bin --index 0
"""

from __future__ import annotations

import argparse
import sys

import structlog

from pagecounts.config import load_config
from pagecounts.core.errors import PageCountsError
from pagecounts.core.store import PageIndex
from pagecounts.main import close_logging, setup_logging

log = structlog.get_logger()


def cmd_build(args: argparse.Namespace, index: PageIndex) -> None:
    index.build_index(args.source)
    index.save_as(args.snapshot)
    print(f"Indexed {len(index)} records into {args.snapshot}")


def cmd_query(args: argparse.Namespace, index: PageIndex) -> None:
    index.load(args.snapshot, verify=not args.trust)
    if args.top_k is None:
        records = index.range(args.page, args.start, args.end)
    else:
        records = index.top_k_range(args.page, args.start, args.end, args.top_k)
    for record in records:
        print(record.to_string(index.time_format))
    print(f"{len(records)} records", file=sys.stderr)


def cmd_dump(args: argparse.Namespace, index: PageIndex) -> None:
    index.load(args.snapshot, verify=not args.trust)
    if args.index is None:
        index.print_all()
    else:
        index.print_record(args.index)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pagecounts", description="Pageview counter index")
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument("--time-format", default=None,
                        help="strptime format of timestamps (default: from config, %%Y%%m%%d-%%H)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("build", help="Parse a raw source file and save a snapshot")
    p.add_argument("source", help="Tab-separated source file: time, page, counter")
    p.add_argument("snapshot", help="Destination snapshot file")
    p.set_defaults(func=cmd_build)

    p = sub.add_parser("query", help="Range or top-k query against a snapshot")
    p.add_argument("snapshot", help="Snapshot file written by 'build'")
    p.add_argument("page", help="Page identifier")
    p.add_argument("start", help="First hour, inclusive")
    p.add_argument("end", help="Last hour, inclusive")
    p.add_argument("--top-k", type=int, default=None, help="Keep only the k earliest records")
    p.add_argument("--trust", action="store_true", help="Skip the sortedness check on load")
    p.set_defaults(func=cmd_query)

    p = sub.add_parser("dump", help="Print stored records")
    p.add_argument("snapshot", help="Snapshot file written by 'build'")
    p.add_argument("--index", type=int, default=None, help="Print only the record at this position")
    p.add_argument("--trust", action="store_true", help="Skip the sortedness check on load")
    p.set_defaults(func=cmd_dump)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    config = load_config(args.config)
    setup_logging(config)
    index = PageIndex(time_format=args.time_format or config.index.time_format)

    try:
        args.func(args, index)
    except (PageCountsError, OSError, IndexError) as exc:
        log.error("command_failed", command=args.command, error=str(exc))
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        close_logging()
    return 0


if __name__ == "__main__":
    sys.exit(main())
