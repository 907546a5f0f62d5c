#!/usr/bin/env python3
"""
Codec Playback Script
=====================

Plays a synthetic codec on a simulated timeline and reports what it emitted.

This script:
    1. Builds the requested codec (optionally wrapped in a ShapedPacketizer)
    2. Steps the target rate through the given values every --step records
    3. Logs every record (at DEBUG) and a summary per rate step
    4. Optionally writes all records as JSON lines

Prerequisites:
    - Install the package: pip install -e .
    - Trace-based codecs need a directory of <prefix>_<res>_<kbps>.txt files

Usage:
    python scripts/play_codecs.py --codec simple --fps 30 --rates 500 1000 1500
    python scripts/play_codecs.py --codec statistics --shaped --payload-size 1200
    python scripts/play_codecs.py --codec trace-scaling --trace-dir traces --prefix foreman
"""

import argparse
import json
import logging
import sys

from syncodecs.codecs import (
    Codec,
    PerfectCodec,
    ShapedPacketizer,
    SimpleFpsBasedCodec,
    StatisticsCodec,
    TraceBasedCodec,
    TraceBasedCodecWithScaling,
)
from syncodecs.config import settings, setup_logging
from syncodecs.playback import interleave, play, summarize


logger = logging.getLogger("play_codecs")


def build_codec(args: argparse.Namespace) -> Codec:
    """Create the codec described by the command line."""
    if args.codec == "perfect":
        codec: Codec = PerfectCodec(args.payload_size)
    elif args.codec == "simple":
        codec = SimpleFpsBasedCodec(args.fps)
    elif args.codec == "statistics":
        codec = StatisticsCodec(args.fps)
    elif args.codec == "trace":
        codec = TraceBasedCodec(args.trace_dir, args.prefix, args.fps, fixed=args.fixed)
    else:
        codec = TraceBasedCodecWithScaling(args.trace_dir, args.prefix, args.fps, fixed=args.fixed)

    if args.shaped:
        codec = ShapedPacketizer(codec, args.payload_size, args.overhead)
    return codec


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Play synthetic codecs on a simulated timeline")
    p.add_argument(
        "--codec",
        choices=["perfect", "simple", "statistics", "trace", "trace-scaling"],
        default="simple",
        help="Codec to play",
    )
    p.add_argument("--fps", type=float, default=settings.codec.default_fps, help="Frames per second")
    p.add_argument("--payload-size", type=int, default=settings.packetizer.payload_size,
                   help="Packet payload size in bytes")
    p.add_argument("--overhead", type=int, default=settings.packetizer.per_packet_overhead,
                   help="Per-packet overhead in bytes (shaped only)")
    p.add_argument("--shaped", action="store_true", help="Wrap the codec in a ShapedPacketizer")
    p.add_argument("--trace-dir", type=str, default="traces", help="Trace directory")
    p.add_argument("--prefix", type=str, default="video", help="Trace file prefix")
    p.add_argument("--fixed", action="store_true", help="Fixed resolution mode (trace codecs)")
    p.add_argument("--rates", type=float, nargs="+", default=[500.0, 1000.0, 2000.0],
                   help="Target rates in kbps, applied in turn")
    p.add_argument("--step", type=int, default=100, help="Records per target rate")
    p.add_argument("--parallel", type=int, default=1,
                   help="Number of identical codecs interleaved on one timeline")
    p.add_argument("--json", type=str, default=None, help="Write records as JSON lines to this file")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(settings)

    schedule = {i * args.step: kbps * 1000.0 for i, kbps in enumerate(args.rates)}
    n_records = args.step * len(args.rates)

    logger.info("=" * 60)
    logger.info(f"Codec: {args.codec}{' (shaped)' if args.shaped else ''}")
    logger.info(f"Rates (kbps): {args.rates}, {args.step} records each")
    logger.info("=" * 60)

    if args.parallel > 1:
        codecs = {f"{args.codec}-{i}": build_codec(args) for i in range(args.parallel)}
        if not all(codecs.values()):
            logger.error("Codec is not in a valid state, aborting")
            return 1
        global_schedule = {index * args.parallel: rate for index, rate in schedule.items()}
        played = interleave(codecs, n_records * args.parallel, rate_schedule=global_schedule)
        for name in codecs:
            summary = summarize(r for r in played if r.source == name)
            logger.info(f"{name}: {summary.records} records, {summary.mean_rate_bps / 1000:.1f} kbps")
    else:
        codec = build_codec(args)
        if not codec:
            logger.error("Codec is not in a valid state, aborting")
            return 1
        played = play(codec, n_records, rate_schedule=schedule, name=args.codec)
        for i, kbps in enumerate(args.rates):
            window = played[i * args.step:(i + 1) * args.step]
            summary = summarize(window)
            logger.info(
                f"Target {kbps:.0f} kbps: {summary.records} records, "
                f"achieved {summary.mean_rate_bps / 1000:.1f} kbps, "
                f"mean size {summary.mean_size:.0f}B, max {summary.max_size}B"
            )

    for record in played:
        logger.debug(f"{record.send_time * 1000:9.2f} ms  {record.source}  size={record.size}")

    if args.json:
        with open(args.json, "w") as f:
            for record in played:
                f.write(json.dumps(record.to_dict()) + "\n")
        logger.info(f"Wrote {len(played)} records to {args.json}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
