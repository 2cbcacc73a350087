#!/usr/bin/env python3
"""Synthetic pagecount log generator.

Writes hourly pageview counters in the tab-separated source format
(``YYYYMMDD-HH<TAB>page<TAB>counter``) for demos and benchmarks.

Usage:
    # 200 pages over 3 days, unsorted like a merged dump
    python -m tools.generator.generate --pages 200 --hours 72 --out data/pagecounts.tsv

    # Reproducible output
    python -m tools.generator.generate --seed 42 --out data/pagecounts.tsv
"""

from __future__ import annotations

import argparse
import math
import random
import sys
import time
from dataclasses import dataclass
from datetime import datetime, timedelta

TIME_FORMAT = "%Y%m%d-%H"

_WORDS = [
    "Lane", "River", "Album", "Season", "Film", "Station", "Bridge", "Festival",
    "Election", "Championship", "Novel", "Island", "Museum", "Theorem", "Band",
]


@dataclass
class SimPage:
    name: str
    base_rate: float  # mean views per hour at the daily peak
    spike_hour: int | None = None
    views_written: int = 0


def make_page(i: int) -> SimPage:
    """Create a page with a heavy-tailed popularity."""
    name = f"{i}_{random.choice(_WORDS)}_{random.choice(_WORDS)}"
    base_rate = random.paretovariate(1.2) * 20
    return SimPage(name=name, base_rate=base_rate)


def hourly_count(page: SimPage, hour_index: int, hour_of_day: int) -> int:
    """Views for one hour: daily cycle, noise, and an occasional spike."""
    # Peak around 20h, trough around 08h
    daily = 0.55 + 0.45 * math.cos((hour_of_day - 20) / 24 * 2 * math.pi)
    rate = page.base_rate * daily
    if page.spike_hour is not None and 0 <= hour_index - page.spike_hour < 6:
        rate *= 10 / (1 + hour_index - page.spike_hour)
    return max(0, int(random.gauss(rate, math.sqrt(rate + 1))))


def generate(args: argparse.Namespace) -> None:
    start = datetime.strptime(args.start, TIME_FORMAT)
    pages = [make_page(i) for i in range(args.pages)]
    for page in random.sample(pages, k=min(len(pages), args.spikes)):
        page.spike_hour = random.randrange(args.hours)

    lines = []
    for hour_index in range(args.hours):
        stamp = start + timedelta(hours=hour_index)
        for page in pages:
            count = hourly_count(page, hour_index, stamp.hour)
            if count == 0 and not args.keep_zero:
                continue
            page.views_written += count
            lines.append(f"{stamp.strftime(TIME_FORMAT)}\t{page.name}\t{count}")

    if args.shuffle:
        random.shuffle(lines)

    out = sys.stdout if args.out == "-" else open(args.out, "w", encoding="utf-8")
    try:
        for line in lines:
            out.write(line + "\n")
    finally:
        if out is not sys.stdout:
            out.close()

    total = sum(p.views_written for p in pages)
    print(f"Wrote {len(lines)} records for {len(pages)} pages over {args.hours} hours", file=sys.stderr)
    print(f"  Total views: {total}", file=sys.stderr)
    top = sorted(pages, key=lambda p: p.views_written, reverse=True)[:5]
    for page in top:
        print(f"  {page.name}: {page.views_written}", file=sys.stderr)


def main():
    parser = argparse.ArgumentParser(description="Synthetic pagecount log generator")
    parser.add_argument("--pages", type=int, default=100, help="Number of distinct pages")
    parser.add_argument("--hours", type=int, default=48, help="Number of consecutive hours")
    parser.add_argument("--start", default="20160626-00", help="First hour (YYYYMMDD-HH)")
    parser.add_argument("--spikes", type=int, default=3, help="Pages that get a traffic spike")
    parser.add_argument("--keep-zero", action="store_true", help="Also write zero counters")
    parser.add_argument("--no-shuffle", dest="shuffle", action="store_false",
                        help="Keep lines in hour order instead of shuffling")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--out", default="-", help="Output file (default: stdout)")

    args = parser.parse_args()
    random.seed(args.seed if args.seed is not None else time.time_ns())

    generate(args)


if __name__ == "__main__":
    main()
