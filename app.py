from __future__ import annotations

import argparse
import os
import sys
from typing import Any, Callable, List, Optional

from reprofile.core.config.manager import ConfigError, ConfigManager
from reprofile.core.config.paths import ConfigFsPaths
from reprofile.core.errors import ReprofileError
from reprofile.core.logger import setup_logging
from reprofile.core.modules import ModuleManager
from reprofile.core.modules.cli import modules_list_lines
from reprofile.core.ops_log import OpsLogger
from reprofile.core.profiles import run_profile_enable
from reprofile.core.profiles.cli import error_lines, result_lines
from reprofile.core.trace import new_trace_id


EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="reprofile", description="Re-enable an installation profile and its module dependencies.")
    ap.add_argument("--root", default=".", help="Site root (contains config/ and the modules directory).")
    ap.add_argument("--modules-root", default=None, help="Override the modules directory from config/site.json.")
    answer = ap.add_mutually_exclusive_group()
    answer.add_argument("-y", "--yes", action="store_true", help="Assume 'yes' as answer to all prompts.")
    answer.add_argument("-n", "--no", action="store_true", help="Assume 'no' as answer to all prompts.")
    ap.add_argument("--verbose", action="store_true", help="Debug logging.")

    sub = ap.add_subparsers(dest="command", required=True)
    pe = sub.add_parser("profile-enable", aliases=["pe"], help="Enable a profile and every module it depends on.")
    pe.add_argument("profile", nargs="?", default=None, help="Profile to enable (defaults to default_profile in config/site.json).")
    pe.set_defaults(handler=cmd_profile_enable, read_only=False)
    ml = sub.add_parser("modules-list", aliases=["ml"], help="List modules and their status.")
    ml.set_defaults(handler=cmd_modules_list, read_only=True)
    return ap


def make_confirmer(args: argparse.Namespace, *, ask: Optional[Callable[[str], str]] = None) -> Callable[[str], bool]:
    def confirm(prompt: str) -> bool:
        if args.yes:
            print(f"{prompt} (y/N) y")
            return True
        if args.no:
            print(f"{prompt} (y/N) n")
            return False
        try:
            ans = (ask or input)(f"{prompt} (y/N) ").strip().lower()
        except (EOFError, KeyboardInterrupt):
            print()
            return False
        return ans in {"y", "yes"}

    return confirm


def cmd_profile_enable(args: argparse.Namespace, *, config: ConfigManager, host: ModuleManager, logger: Any) -> int:
    site = config.site()
    result = run_profile_enable(
        args.profile,
        host=host,
        confirm=make_confirmer(args),
        nested_expander=host.nested_expander(),
        default_profile=site.default_profile,
        logger=logger,
        ops=OpsLogger(path=os.path.join(config.log_dir(), "ops.jsonl")),
        trace_id=new_trace_id(),
    )
    for line in result_lines(result):
        print(line)
    return EXIT_OK


def cmd_modules_list(args: argparse.Namespace, *, config: ConfigManager, host: ModuleManager, logger: Any) -> int:
    for line in modules_list_lines(module_manager=host):
        print(line)
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = ConfigManager(fs=ConfigFsPaths(args.root), logger=None, read_only=bool(args.read_only))
        config.load_all()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG

    logger = setup_logging(config.log_dir(), verbose=bool(args.verbose))
    config.logger = logger
    modules_root = config.fs.resolve(args.modules_root) if args.modules_root else None
    host = ModuleManager(config_manager=config, modules_root=modules_root, logger=logger)

    try:
        return int(args.handler(args, config=config, host=host, logger=logger))
    except ReprofileError as e:
        logger.debug(f"{e.code}: {e.context}")
        for line in error_lines(e):
            print(line, file=sys.stderr)
        return EXIT_FAILED
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG


if __name__ == "__main__":
    raise SystemExit(main())
