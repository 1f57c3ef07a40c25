"""
Convenience launcher — starts the CP Focus engine and (optionally) the hint service.

Usage:
    python start.py             # engine only
    python start.py --hints     # engine + hint service
"""

from __future__ import annotations

import argparse
import subprocess
import sys
import time

from cpfocus.config import config


def start_engine() -> subprocess.Popen:
    return subprocess.Popen(
        [sys.executable, "-m", "cpfocus.main"],
        stdout=sys.stdout,
        stderr=sys.stderr,
    )


def start_hint_service() -> subprocess.Popen:
    return subprocess.Popen(
        [sys.executable, "-m", "cpfocus.service.main"],
        stdout=sys.stdout,
        stderr=sys.stderr,
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Start CP Focus")
    parser.add_argument("--hints", action="store_true", help="Also start the hint service")
    args = parser.parse_args()

    procs = []
    if args.hints:
        print("Starting hint service…")
        procs.append(start_hint_service())
        time.sleep(1.5)  # give the service a moment to bind

    print("Starting CP Focus engine…")
    procs.append(start_engine())

    print(f"\nEngine → http://{config.api_host}:{config.api_port}")
    if args.hints:
        print(f"Hint service → http://{config.service_host}:{config.service_port}")
    print("Press Ctrl+C to stop.\n")

    try:
        for proc in procs:
            proc.wait()
    except KeyboardInterrupt:
        print("\nShutting down…")
        for proc in procs:
            proc.terminate()
            proc.wait()


if __name__ == "__main__":
    main()
