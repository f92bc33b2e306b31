#!/usr/bin/env python3
"""
Stream Probe
============

Standalone script to exercise the ingestion layer against a byte source.

This script:
    1. Opens the configured (or overridden) byte source
    2. Streams for a configurable duration
    3. Logs ingestion stats every report interval
    4. Prints the final window statistics and a local summary

Usage:
    python scripts/stream_probe.py --duration 30
    python scripts/stream_probe.py --backend serial --port /dev/ttyACM0 --baud 115200
    python scripts/stream_probe.py --backend simulated --corrupt-every 7
"""

import argparse
import asyncio
import logging
import time

from aiduino.config import load_config
from aiduino.main import create_byte_source
from aiduino.stream import StreamSession
from aiduino.summary import local_summary
from aiduino.transport import SourceConnectionError


logger = logging.getLogger("stream_probe")


async def run_probe(args: argparse.Namespace) -> dict:
    """
    Run the probe.

    Returns:
        Final stream metrics dict
    """
    cfg = load_config(args.config)
    if args.backend:
        cfg.source.backend = args.backend
    if args.port:
        cfg.source.serial.port = args.port
    if args.baud:
        cfg.source.serial.baud_rate = args.baud
    if args.url:
        cfg.source.websocket.url = args.url
    if args.corrupt_every is not None:
        cfg.source.simulated.corrupt_every = args.corrupt_every

    logger.info("=" * 60)
    logger.info("Stream Probe")
    logger.info("=" * 60)
    logger.info(f"Backend: {cfg.source.backend}")
    logger.info(f"Duration: {args.duration} seconds")
    logger.info(f"Window capacity: {cfg.buffer.capacity}")
    logger.info("=" * 60)

    session = StreamSession(
        source_factory=lambda: create_byte_source(cfg),
        capacity=cfg.buffer.capacity,
        notify=lambda n: logger.info(f"[{n.level.value}] {n.title} {n.description}".rstrip()),
    )
    try:
        await session.connect()
    except SourceConnectionError as e:
        logger.error(f"Could not connect: {e}")

    start_time = time.time()
    last_report_time = start_time
    last_sample_count = 0

    try:
        while session.connected:
            elapsed = time.time() - start_time
            if elapsed >= args.duration:
                logger.info(f"Probe duration ({args.duration}s) reached")
                break

            time_since_report = time.time() - last_report_time
            if time_since_report >= args.report_interval:
                m = session.metrics
                rate = (m.samples_decoded - last_sample_count) / time_since_report

                logger.info("-" * 40)
                logger.info(f"Progress Report (elapsed: {elapsed:.0f}s)")
                logger.info(f"  State: {session.state.value}")
                logger.info(f"  Samples decoded: {m.samples_decoded} ({rate:.1f}/s)")
                logger.info(f"  Malformed lines: {m.malformed_lines}")
                logger.info(f"  Non-object lines: {m.unexpected_shape_lines}")
                logger.info(f"  Window: {len(session.ring)}/{session.ring.capacity}")

                last_report_time = time.time()
                last_sample_count = m.samples_decoded

            await asyncio.sleep(0.5)

    except KeyboardInterrupt:
        logger.info("Probe interrupted by user")
    finally:
        await session.disconnect()

    logger.info("=" * 60)
    logger.info("Final Report")
    logger.info("=" * 60)
    for key, value in session.metrics.to_dict().items():
        logger.info(f"  {key}: {value}")
    logger.info(f"  {local_summary(session.ring.snapshot())}")
    if session.last_error:
        logger.info(f"  Last error: {session.last_error}")

    return session.metrics.to_dict()


def main() -> None:
    parser = argparse.ArgumentParser(description="Probe a device byte stream")
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument("--backend", choices=["serial", "websocket", "simulated"], default=None)
    parser.add_argument("--port", default=None, help="Serial port")
    parser.add_argument("--baud", type=int, default=None, help="Serial baud rate")
    parser.add_argument("--url", default=None, help="WebSocket bridge URL")
    parser.add_argument("--corrupt-every", type=int, default=None, help="Simulator: malformed line every N")
    parser.add_argument("--duration", type=int, default=30, help="Seconds to stream")
    parser.add_argument("--report-interval", type=int, default=10, help="Seconds between reports")
    args = parser.parse_args()

    asyncio.run(run_probe(args))


if __name__ == "__main__":
    main()
