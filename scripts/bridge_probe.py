#!/usr/bin/env python3
"""Passive rosbridge probe.

Connects to a rosbridge server, subscribes to one or more topics and
prints every inbound message with the gap since the previous one. Use it
to check which topics a robot actually publishes and how often.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from robodash import BridgeClient, BridgeConfig, BridgeConnectionError  # noqa: E402
from robodash._constants import AMCL_POSE_TOPIC, AMCL_POSE_TYPE, ODOM_TOPIC, ODOM_TYPE  # noqa: E402
from robodash._redact import summarize_for_log  # noqa: E402

_LOG = logging.getLogger("bridge_probe")


@dataclass
class ProbeStats:
    started_at: float
    per_topic: dict[str, int] = field(default_factory=dict)
    last_message_at: dict[str, float] = field(default_factory=dict)

    def on_message(self, topic: str, now: float) -> float | None:
        previous = self.last_message_at.get(topic)
        self.per_topic[topic] = self.per_topic.get(topic, 0) + 1
        self.last_message_at[topic] = now
        return None if previous is None else now - previous


def _topic_arg(value: str) -> tuple[str, str]:
    topic, sep, message_type = value.partition("=")
    if not sep or not topic or not message_type:
        raise argparse.ArgumentTypeError("expected TOPIC=TYPE, e.g. /odom=nav_msgs/Odometry")
    return topic, message_type


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Passive rosbridge probe: subscribe and print inbound messages.",
    )
    parser.add_argument(
        "--url",
        default=None,
        help="rosbridge WebSocket URL (default: ROBODASH_BRIDGE_URL or ws://localhost:9090).",
    )
    parser.add_argument(
        "--topic",
        action="append",
        type=_topic_arg,
        default=[],
        metavar="TOPIC=TYPE",
        help="Topic to subscribe to; repeatable. Defaults to the AMCL pose and odometry topics.",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Pretty-print full message payloads.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs, including frame traces.",
    )
    return parser.parse_args()


def _print_message(topic: str, msg: Any, gap: float | None, *, pretty: bool) -> None:
    gap_text = "first" if gap is None else f"+{gap:.2f}s"
    if pretty:
        print(f"[probe] {topic} ({gap_text})")
        print(json.dumps(msg, indent=2, sort_keys=True))
    else:
        print(f"[probe] {topic} ({gap_text}) {summarize_for_log(msg, max_string=120, max_items=8)}")


def _print_summary(stats: ProbeStats) -> None:
    runtime = time.time() - stats.started_at
    print("[probe] Summary")
    print(f"[probe]   runtime_s : {runtime:.1f}")
    for topic, count in sorted(stats.per_topic.items()):
        rate = count / runtime if runtime > 0 else 0.0
        print(f"[probe]   {topic:<30} {count:>6} msgs  {rate:.2f} Hz")


async def _probe(config: BridgeConfig, topics: list[tuple[str, str]], args: argparse.Namespace) -> int:
    stats = ProbeStats(started_at=time.time())
    stop = asyncio.Event()

    def handler_for(topic: str):
        def handle(msg: Any) -> None:
            gap = stats.on_message(topic, time.time())
            _print_message(topic, msg, gap, pretty=args.json)

        return handle

    async with BridgeClient(config) as bridge:

        async def subscribe_all() -> None:
            for topic, message_type in topics:
                await bridge.subscribe(topic, message_type, handler_for(topic))
            print(f"[probe] Subscribed to {len(topics)} topic(s) on {config.url}")

        bridge.on_connection(subscribe_all)
        bridge.on_disconnection(lambda: print("[probe] Connection lost"))

        try:
            await bridge.connect()
        except BridgeConnectionError as exc:
            print(f"[probe] Connect failed: {exc}", file=sys.stderr)
            return 2

        try:
            if args.duration > 0:
                await asyncio.wait_for(stop.wait(), timeout=args.duration)
            else:
                await stop.wait()
        except TimeoutError:
            pass
        except asyncio.CancelledError:
            _LOG.debug("Probe cancelled")

    _print_summary(stats)
    return 0


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, Any] = {"trace_frames": args.verbose}
    if args.url:
        overrides["url"] = args.url
    config = BridgeConfig.from_env(**overrides)
    topics = args.topic or [(AMCL_POSE_TOPIC, AMCL_POSE_TYPE), (ODOM_TOPIC, ODOM_TYPE)]

    try:
        return asyncio.run(_probe(config, topics, args))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    raise SystemExit(_main())
