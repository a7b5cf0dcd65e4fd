from __future__ import annotations

import argparse
import json
from collections.abc import Sequence
from typing import Any

from .config import get_settings
from .dispatch import SmsDispatcher
from .observability import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sms-dispatch",
        description="Send an SMS through the M360 gateway or check that it is reachable.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    send = subparsers.add_parser("send", help="Validate and send one SMS.")
    send.add_argument("--from", dest="sender", required=True, help="Sender name (max 11 chars).")
    send.add_argument(
        "--to",
        nargs="+",
        required=True,
        help="One or more PH mobile numbers (09XXXXXXXXX).",
    )
    send.add_argument("--text", required=True, help="Message body (max 160 chars).")
    send.add_argument("--dcs", type=int, default=None, help="Data coding scheme (default 0).")
    send.add_argument("--request-id", default=None)

    subparsers.add_parser("probe", help="Check connectivity to the configured gateway URL.")
    return parser


def _print_json(data: dict[str, Any]) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    configure_logging(level=settings.log_level)

    dispatcher = SmsDispatcher(settings)
    try:
        if args.command == "probe":
            report = dispatcher.probe()
            _print_json(report)
            return 0 if report["status"] == "success" else 1

        payload: dict[str, Any] = {"from": args.sender, "to": args.to, "text": args.text}
        if args.dcs is not None:
            payload["dcs"] = args.dcs
        if args.request_id:
            payload["request_id"] = args.request_id

        outcome = dispatcher.send(payload)
        _print_json(outcome.to_dict())
        return 0 if outcome.ok else 1
    finally:
        dispatcher.close()


if __name__ == "__main__":
    raise SystemExit(main())
