"""Commands shipped with the bridge itself."""

from __future__ import annotations

import argparse
import json
import platform
import sys

from commandbridge.plugins import CommandContext, CommandHandler, CommandRegistrar


def _about_builder(parser: argparse.ArgumentParser, ctx: CommandContext) -> CommandHandler:
    parser.add_argument("--json", action="store_true", help="Emit machine-readable JSON")

    def handler(args: argparse.Namespace) -> int:
        info = {
            "version": ctx.settings.cli_version,
            "python": platform.python_version(),
            "executable": sys.executable,
            "home": str(ctx.settings.home_dir),
            "config": str(ctx.settings.config_path),
        }
        if args.json:
            ctx.writeln(json.dumps(info, ensure_ascii=False, indent=2))
            return 0
        width = max(len(key) for key in info)
        for key, value in info.items():
            ctx.writeln(f"{key.ljust(width)}  {value}")
        return 0

    return handler


def register_builtin_commands(registrar: CommandRegistrar, context: CommandContext) -> None:
    registrar.add_command("about", "Display information about the bridge runtime", _about_builder)
