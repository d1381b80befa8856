"""
otpkit – command-line entry point.

Usage
-----
    python main.py secret --length 20
    python main.py code JBSWY3DPEHPK3PXP
    python main.py verify 123456 JBSWY3DPEHPK3PXP --window 1
    python main.py uri JBSWY3DPEHPK3PXP alice@example.com --issuer Acme
    python main.py parse "otpauth://totp/Acme:alice?secret=JBSWY3DPEHPK3PXP"
    python main.py recovery --count 10 --length 8
    python main.py uuid

Or, if installed as a package:
    otpkit <command> ...
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from core.entropy import new_uuid4
from core.errors import OTPError
from core.recovery import DEFAULT_RECOVERY_COUNT, DEFAULT_RECOVERY_LENGTH, generate_recovery_codes
from core.totp import (
    DEFAULT_DIGITS,
    DEFAULT_PERIOD,
    Algorithm,
    generate_totp,
    remaining_seconds,
    validate_totp,
)
from core.utils import DEFAULT_SECRET_LENGTH, format_otp, new_secret
from provisioning.uri import ProvisioningURI, parse_otpauth_uri

logger = logging.getLogger("otpkit")

DEFAULT_ISSUER = os.environ.get("OTPKIT_ISSUER", "otpkit")


# ── Logging setup ─────────────────────────────────────────────────────────────

def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # Keep key material handling quiet even in verbose mode
    logging.getLogger("core.crypto").setLevel(logging.WARNING)
    logging.getLogger("core.entropy").setLevel(logging.WARNING)


# ── Command handlers ──────────────────────────────────────────────────────────

def cmd_secret(args: argparse.Namespace) -> int:
    print(new_secret(args.length))
    return 0


def cmd_code(args: argparse.Namespace) -> int:
    code = generate_totp(
        args.secret,
        timestamp=args.time,
        period=args.period,
        digits=args.digits,
        algorithm=args.algorithm,
    )
    left = remaining_seconds(args.period, args.time)
    print(f"{format_otp(code) if args.pretty else code}  (valid {left}s)")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    ok = validate_totp(
        args.code,
        args.secret,
        timestamp=args.time,
        period=args.period,
        digits=args.digits,
        algorithm=args.algorithm,
        window=args.window,
    )
    print("valid" if ok else "invalid")
    return 0 if ok else 1


def cmd_uri(args: argparse.Namespace) -> int:
    descriptor = ProvisioningURI(
        issuer=args.issuer,
        algorithm=args.algorithm.value,
        digits=args.digits,
        period=args.period,
    )
    print(descriptor.generate(args.secret, args.account))
    return 0


def cmd_parse(args: argparse.Namespace) -> int:
    parsed = parse_otpauth_uri(args.uri)
    print(f"type:      {parsed.otp_type}")
    print(f"issuer:    {parsed.issuer}")
    print(f"account:   {parsed.account_name}")
    print(f"algorithm: {parsed.algorithm.value}")
    print(f"digits:    {parsed.digits}")
    if parsed.otp_type == "totp":
        print(f"period:    {parsed.period}")
    else:
        print(f"counter:   {parsed.counter}")
    return 0


def cmd_recovery(args: argparse.Namespace) -> int:
    for code in generate_recovery_codes(args.count, args.length):
        print(code)
    return 0


def cmd_uuid(args: argparse.Namespace) -> int:
    print(new_uuid4())
    return 0


# ── Argument parsing ──────────────────────────────────────────────────────────

def _add_otp_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--digits", type=int, default=DEFAULT_DIGITS, help="code length (6-8)")
    parser.add_argument("--period", type=int, default=DEFAULT_PERIOD, help="time step in seconds")
    parser.add_argument(
        "--algorithm",
        type=Algorithm,
        default=Algorithm.SHA1,
        help="HMAC algorithm: SHA1, SHA256 or SHA512",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="otpkit", description="TOTP helper toolkit")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("secret", help="generate a new base32 secret")
    p.add_argument("--length", type=int, default=DEFAULT_SECRET_LENGTH, help="secret size in bytes")
    p.set_defaults(func=cmd_secret)

    p = sub.add_parser("code", help="print the current TOTP code")
    p.add_argument("secret")
    p.add_argument("--time", type=int, default=None, help="Unix timestamp (default: now)")
    p.add_argument("--pretty", action="store_true", help="group digits for display")
    _add_otp_options(p)
    p.set_defaults(func=cmd_code)

    p = sub.add_parser("verify", help="check a TOTP code")
    p.add_argument("code")
    p.add_argument("secret")
    p.add_argument("--time", type=int, default=None, help="Unix timestamp (default: now)")
    p.add_argument("--window", type=int, default=1, help="allowed clock skew in steps")
    _add_otp_options(p)
    p.set_defaults(func=cmd_verify)

    p = sub.add_parser("uri", help="print an otpauth:// enrollment URI")
    p.add_argument("secret")
    p.add_argument("account")
    p.add_argument("--issuer", default=DEFAULT_ISSUER)
    _add_otp_options(p)
    p.set_defaults(func=cmd_uri)

    p = sub.add_parser("parse", help="show the settings of an otpauth:// URI")
    p.add_argument("uri")
    p.set_defaults(func=cmd_parse)

    p = sub.add_parser("recovery", help="generate recovery codes")
    p.add_argument("--count", type=int, default=DEFAULT_RECOVERY_COUNT)
    p.add_argument("--length", type=int, default=DEFAULT_RECOVERY_LENGTH)
    p.set_defaults(func=cmd_recovery)

    p = sub.add_parser("uuid", help="generate a random UUID (v4)")
    p.set_defaults(func=cmd_uuid)

    return parser


# ── Main ──────────────────────────────────────────────────────────────────────

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _setup_logging(args.verbose)
    logger.debug("Running command '%s'", args.command)

    try:
        return args.func(args)
    except (OTPError, ValueError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
