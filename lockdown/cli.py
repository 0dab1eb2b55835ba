"""Operator CLI: list, add, remove and check blocked IPs; run retention cleanup.

Examples:
  lockdown block list            # active blocks only
  lockdown block list --all      # include expired blocks
  lockdown block add 192.168.1.100
  lockdown block remove 192.168.1.100
  lockdown block check 192.168.1.100
  lockdown cleanup --days 7
  lockdown notify test-pushover

Schedule ``lockdown cleanup`` (cron or similar); it never runs on its own.
"""
from __future__ import annotations

import argparse
import logging
import os
import sys

from lockdown.bootstrap import Protection
from lockdown.domain.errors import ValidationError
from lockdown.domain.invariant import validate_ip, validate_retention_days
from lockdown.infrastructure.audit import log_event as audit_log

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 64

log = logging.getLogger("lockdown.cli")


def _audit(action: str, payload: dict) -> None:
    try:
        audit_log(action, "cli", payload)
    except OSError as exc:
        log.warning("Audit log write failed: %s", exc)


def _cmd_block_list(protection: Protection, args: argparse.Namespace) -> int:
    engine = protection.engine
    blocks = engine.get_blocked_ips(include_expired=args.all)
    if not blocks:
        print("No blocked IPs found.")
        return EXIT_OK

    print("All blocked IPs:" if args.all else "Currently blocked IPs:")
    print()
    now = engine.now()
    for block in blocks:
        status = "[ACTIVE]" if block.is_active(now) else "[EXPIRED]"
        print(f"  IP: {block.ip_address}")
        print(f"    Status: {status}")
        print(f"    Reason: {block.reason}")
        print(f"    Attempts: {block.attempt_count}")
        print(f"    Blocked until: {block.blocked_until.isoformat()}")
        print(f"    Manual block: {'Yes' if block.is_manual else 'No'}")
        print()
    print(f"Total: {len(blocks)} blocked IP(s)")
    return EXIT_OK


def _cmd_block_add(protection: Protection, args: argparse.Namespace) -> int:
    ip = validate_ip(args.ip)
    protection.engine.block_ip(ip, 0, "Blocked via CLI", is_manual=True)
    _audit("ip_blocked", {"ip": ip, "reason": "Blocked via CLI"})
    print(f"IP address {ip} has been blocked.")
    return EXIT_OK


def _cmd_block_remove(protection: Protection, args: argparse.Namespace) -> int:
    ip = validate_ip(args.ip)
    if protection.engine.unblock_ip(ip):
        _audit("ip_unblocked", {"ip": ip})
        print(f"IP address {ip} has been unblocked.")
    else:
        print(f"IP address {ip} was not found in the block list.")
    return EXIT_OK


def _cmd_block_check(protection: Protection, args: argparse.Namespace) -> int:
    ip = validate_ip(args.ip)
    engine = protection.engine
    print(f"IP: {ip}")
    if engine.is_whitelisted(ip):
        print("Status: WHITELISTED")
    elif engine.is_blocked(ip):
        print("Status: BLOCKED")
    else:
        print("Status: NOT BLOCKED")
    return EXIT_OK


def _cmd_cleanup(protection: Protection, args: argparse.Namespace) -> int:
    days = validate_retention_days(args.days)
    print("Running Login Lockdown cleanup...")
    deleted = protection.engine.cleanup(days)
    _audit("cleanup", {"days": days, "deleted": deleted})
    print(f"Cleanup complete. Deleted {deleted} records older than {days} days.")
    return EXIT_OK


def _cmd_test_pushover(protection: Protection, args: argparse.Namespace) -> int:
    result = protection.notifier.send_test_pushover()
    print(result["message"])
    return EXIT_OK if result["success"] else EXIT_ERROR


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lockdown",
        description="Manage brute-force login protection.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    block = sub.add_parser("block", help="Manage blocked IP addresses")
    block_sub = block.add_subparsers(dest="action", required=True)

    p_list = block_sub.add_parser("list", help="List blocked IPs")
    p_list.add_argument("-a", "--all", action="store_true", help="Include expired blocks")
    p_list.set_defaults(func=_cmd_block_list)

    p_add = block_sub.add_parser("add", help="Block an IP address manually")
    p_add.add_argument("ip")
    p_add.set_defaults(func=_cmd_block_add)

    p_remove = block_sub.add_parser("remove", help="Unblock an IP address")
    p_remove.add_argument("ip")
    p_remove.set_defaults(func=_cmd_block_remove)

    p_check = block_sub.add_parser("check", help="Show block/whitelist status of an IP")
    p_check.add_argument("ip")
    p_check.set_defaults(func=_cmd_block_check)

    p_cleanup = sub.add_parser("cleanup", help="Delete old attempts and expired blocks")
    p_cleanup.add_argument("-d", "--days", type=int, default=30,
                           help="Keep attempts newer than this many days (default: 30)")
    p_cleanup.set_defaults(func=_cmd_cleanup)

    notify = sub.add_parser("notify", help="Notification utilities")
    notify_sub = notify.add_subparsers(dest="action", required=True)
    p_push = notify_sub.add_parser("test-pushover", help="Send a test Pushover message")
    p_push.set_defaults(func=_cmd_test_pushover)

    return parser


def main(argv: list[str] | None = None, protection: Protection | None = None) -> int:
    args = build_parser().parse_args(argv)

    if protection is None:
        from dotenv import load_dotenv
        from lockdown.bootstrap import build_protection

        load_dotenv(os.path.join(os.getcwd(), ".env"))
        logging.basicConfig(
            level=os.environ.get("LOG_LEVEL", "WARNING").upper(),
            format="%(levelname)s %(name)s: %(message)s",
        )
        protection = build_protection()

    try:
        return args.func(protection, args)
    except ValidationError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
