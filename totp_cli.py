#!/usr/bin/env python3

import argparse
import re
import sys
from typing import List, Optional

from totp_config import CONFIG_FILE_SPECIFIER, ConfigError, describe_fields, load_config
from totp_utils import current_time_seconds, generate_code


TIME_ARGUMENT_NOW = "now"


def usage_epilog() -> str:
    lines = ["{config} must be a string representing valid JSON with the following keys:"]
    lines += describe_fields()
    lines += [
        "",
        "(Please refer to rfc6238 for the exact meaning of the configuration parameters.)",
        "",
        f'If the {{config}} argument starts with "{CONFIG_FILE_SPECIFIER}", then the remainder of the argument is',
        "assumed to be a path to a file that contains the JSON for the configuration.",
        "",
        "If no {time} arguments are given, then the TOTP for the current time is output.",
        "Otherwise, a TOTP value will be output for each {time} argument given.",
        "",
        "Each {time} argument must be either an integer representing the elapsed time in",
        "seconds since the beginning of the Unix epoch (1970-01-01T00:00:00Z), or the",
        f'string "{TIME_ARGUMENT_NOW}" to specify the current time.',
    ]
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="totp-gen",
        description="Generate TOTP codes (rfc6238).",
        epilog=usage_epilog(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", dest="verbose", action="store_true", help="turns on verbose mode")
    parser.add_argument("config", help="JSON config, or @path to a JSON file")
    parser.add_argument("times", nargs="*", metavar="time", help='Unix time in seconds, or "now"')
    return parser


def parse_time_argument(arg: str) -> Optional[int]:
    """Seconds for a {time} argument, or None if it is not valid."""
    if arg == TIME_ARGUMENT_NOW:
        return current_time_seconds()
    arg = arg.strip()
    if not re.fullmatch(r"[0-9]+", arg):
        return None
    return int(arg)


def print_trace(event: str, details: dict):
    print(f"{event}: {details}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    trace = print_trace if args.verbose else None

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"** bad config: {e}\n", file=sys.stderr)
        parser.print_help(sys.stderr)
        return 1

    if not args.times:
        print(generate_code(config, trace=trace))
        return 0

    for arg in args.times:
        time_seconds = parse_time_argument(arg)
        if time_seconds is None:
            print(f'{{time}} must be "{TIME_ARGUMENT_NOW}" or a non-negative integer, skipping: {arg}', file=sys.stderr)
            continue
        try:
            print(generate_code(config, time_seconds, trace=trace))
        except (ValueError, OverflowError) as e:
            print(f"{e}, skipping: {arg}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
