from __future__ import annotations

import argparse

from commandbridge.plugins import CommandContext, CommandHandler, CommandRegistrar


class HelloPlugin:
    name = "hello"

    def register(self, registrar: CommandRegistrar, context: CommandContext) -> None:
        def builder(parser: argparse.ArgumentParser, ctx: CommandContext) -> CommandHandler:
            parser.add_argument("who", nargs="?", default="world", help="Name to greet")
            parser.add_argument("--shout", action="store_true", help="Greet in upper case")
            parser.add_argument("--tag", action="append", help="Tag appended to the greeting")

            def handler(args: argparse.Namespace) -> int:
                message = f"Hello, {args.who}! commandbridge version {ctx.settings.cli_version}"
                if args.tag:
                    message += " [" + ", ".join(args.tag) + "]"
                ctx.writeln(message.upper() if args.shout else message)
                return 0

            return handler

        registrar.add_command("app:hello", "Say hello from a plugin", builder)


def register(registrar: CommandRegistrar, context: CommandContext) -> None:
    HelloPlugin().register(registrar, context)
