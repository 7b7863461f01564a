"""CLI entrypoint for the OTA URL resolver."""

import argparse
import json
import sys
from dataclasses import replace
from typing import Any

from .config import ResolverConfig
from .errors import ResolveError, TransportError
from .expiry import extract_expires_timestamp, format_remaining_time
from .labels import get_expired_label
from .log_utils import log, set_log_file
from .properties import GetpropPropertyProvider, PropertyProvider
from .resolver import RedirectResolver, properties_from_config


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Resolve an OTA downloadCheck URL to its final download link."
    )
    parser.add_argument("url", help="Download URL to resolve.")
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--props",
        help="Path to a saved getprop dump or build.prop used for request headers.",
    )
    source.add_argument(
        "--getprop",
        action="store_true",
        help="Read device properties with the local getprop binary (default).",
    )
    source.add_argument(
        "--adb",
        action="store_true",
        help="Read device properties from an attached device via adb shell getprop.",
    )
    parser.add_argument(
        "--max-hops",
        type=int,
        help="Maximum number of redirect hops (default: 10).",
    )
    parser.add_argument(
        "--language",
        help="Language used for the expiry label (e.g. en, zh_CN).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Write the result as JSON to stdout.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log every hop.",
    )
    parser.add_argument(
        "--log-file",
        help="Append log lines to this file instead of stderr.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    config = _apply_args(ResolverConfig.from_env(), args)
    set_log_file(args.log_file)
    try:
        properties = _select_properties(args, config)
    except OSError as exc:
        parser.error(f"Cannot read properties file: {exc}")

    resolver = RedirectResolver(properties=properties, config=config)
    log(config.verbose, "Resolving", url=args.url)
    try:
        final_url = resolver.resolve(args.url)
    except (ResolveError, TransportError) as exc:
        log(config.verbose, "Resolution failed", error=exc)
        _emit(args, {"status": "error", "url": args.url, "final_url": None, "error": str(exc)})
        return 1

    result = _build_result(args.url, final_url, config)
    _emit(args, result)
    return 0


def _apply_args(config: ResolverConfig, args: argparse.Namespace) -> ResolverConfig:
    overrides: dict[str, Any] = {}
    if args.props:
        overrides["props_file"] = args.props
    if args.max_hops and args.max_hops > 0:
        overrides["max_hops"] = args.max_hops
    if args.language:
        overrides["language"] = args.language
    if args.verbose:
        overrides["verbose"] = True
    if args.debug:
        overrides["debug"] = True
    return replace(config, **overrides) if overrides else config


def _select_properties(args: argparse.Namespace, config: ResolverConfig) -> PropertyProvider:
    if args.adb:
        return GetpropPropertyProvider(command=("adb", "shell", "getprop"), debug=config.debug)
    if args.getprop:
        return GetpropPropertyProvider(debug=config.debug)
    return properties_from_config(config)


def _build_result(url: str, final_url: str, config: ResolverConfig) -> dict[str, Any]:
    expires = extract_expires_timestamp(final_url)
    remaining = None
    if expires is not None:
        remaining = format_remaining_time(
            expires, expired_label=get_expired_label(config.language)
        )
    return {
        "status": "ok",
        "url": url,
        "final_url": final_url,
        "expires": expires,
        "remaining": remaining,
        "error": None,
    }


def _emit(args: argparse.Namespace, result: dict[str, Any]) -> None:
    if args.json:
        sys.stdout.write(json.dumps(result, indent=2, ensure_ascii=False) + "\n")
        return
    if result["status"] != "ok":
        sys.stderr.write(f"error: {result['error']}\n")
        return
    sys.stdout.write(result["final_url"] + "\n")
    if result.get("remaining"):
        sys.stdout.write(f"expires in: {result['remaining']}\n")


if __name__ == "__main__":
    raise SystemExit(main())
