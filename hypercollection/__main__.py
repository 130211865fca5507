#!/usr/bin/env python3

import os
import sys
import json
import argparse
import logging
from typing import Any, Dict, List, Optional

import uvicorn

from hypercollection import settings as _settings
from hypercollection.api.api import create_app
from hypercollection.collection import InvalidParameter, NullOrdering, evaluate
from hypercollection.schemas import config


def get_parser(program: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=program)

    commands = parser.add_subparsers(
        description="Available sub-commands: init, run, evaluate",
        dest="command",
        required=True,
        metavar="<command>",
        help="the sub-command to be executed"
    )

    parser_init = commands.add_parser(
        "init",
        description="Initialize the project by creating a config file"
    )
    parser_run = commands.add_parser(
        "run",
        description="Run 'uvicorn' ASGI server to serve the hypercollection REST API"
    )
    parser_evaluate = commands.add_parser(
        "evaluate",
        description="Evaluate collection query parameters on a JSON array of resources and print the envelope"
    )

    parser_init.add_argument(
        "--database",
        type=str,
        metavar="url",
        help="Database connection URL including scheme and auth"
    )
    parser_init.add_argument(
        "--force",
        action="store_true",
        help="Allow overwriting an existing config file"
    )

    parser_run.add_argument(
        "--host",
        type=str,
        metavar="host",
        help="Bind TCP socket to this host (overwrite config)"
    )
    parser_run.add_argument(
        "--port",
        type=int,
        metavar="port",
        help="Bind TCP socket to this port (overwrite config)"
    )
    parser_run.add_argument(
        "--config",
        type=str,
        metavar="config",
        default="config.json",
        help="Overwrite the config file (defaults to 'config.json')"
    )
    parser_run.add_argument(
        "--debug",
        action="store_true",
        help="Enable full debug logging"
    )
    parser_run.add_argument(
        "--debug-sql",
        action="store_true",
        help="Enable echoing of database actions (overwrites config)"
    )
    parser_run.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload"
    )
    parser_run.add_argument(
        "--no-access-log",
        action="store_true",
        help="Disable access logs"
    )
    parser_run.add_argument(
        "--root-path",
        type=str,
        default="",
        metavar="p",
        help="Sub-mount the application below the given path"
    )

    parser_evaluate.add_argument(
        "file",
        nargs="?",
        default="-",
        metavar="file",
        help="Path to a JSON file containing an array of resources (default: read from stdin)"
    )
    parser_evaluate.add_argument(
        "--sort",
        type=str,
        metavar="attr",
        help="Attribute to sort the resources by (case-insensitive)"
    )
    parser_evaluate.add_argument(
        "--reverse",
        action="store_true",
        help="Reverse the order of the resources"
    )
    parser_evaluate.add_argument(
        "--limit",
        type=str,
        metavar="n",
        help="Maximum number of resources in the page"
    )
    parser_evaluate.add_argument(
        "--offset",
        type=str,
        metavar="n",
        help="Number of leading resources to skip"
    )
    parser_evaluate.add_argument(
        "--details",
        type=str,
        default="minimal",
        metavar="level",
        help="Detail level of the items, 'minimal' or 'all' (default: 'minimal')"
    )
    parser_evaluate.add_argument(
        "--key",
        type=str,
        default="id",
        metavar="attr",
        help="Attribute holding the stable key of a resource (default: 'id')"
    )
    parser_evaluate.add_argument(
        "--nulls",
        choices=[n.value for n in NullOrdering],
        default=NullOrdering.LAST.value,
        help="Placement of resources without a value for the sort attribute (default: 'last')"
    )
    parser_evaluate.add_argument(
        "--indent",
        type=int,
        metavar="n",
        help="Indent the JSON output with n spaces (default: none)"
    )

    return parser


def init_project(args: argparse.Namespace) -> int:
    path = os.path.abspath(_settings.CONFIG_PATHS[0])
    if os.path.exists(path) and not args.force:
        print(
            f"A config file has been found at {path!r}. If you want a fresh "
            f"configuration, use '--force' to overwrite it.",
            file=sys.stderr
        )
        return 1

    conf = config.CoreConfig()
    if args.database:
        conf.database.connection = args.database
    _settings.store_configuration(conf, path)
    print(f"Successfully created the new config file {path!r}.")
    return 0


def run_server(args: argparse.Namespace) -> int:
    if args.debug:
        print("Do not start the server this way during production!", file=sys.stderr)

    _settings.CONFIG_PATHS.insert(0, args.config)
    try:
        settings = _settings.Settings()
    except ValueError:
        print("Ensure that the configuration file is valid. Please correct any errors.", file=sys.stderr)
        raise

    if args.debug:
        settings.logging.root["level"] = "DEBUG"
        for handler in settings.logging.handlers:
            settings.logging.handlers[handler]["level"] = "DEBUG"
    if args.debug_sql:
        settings.database.debug_sql = args.debug_sql

    port = args.port
    if port is None:
        port = settings.server.port
    host = args.host
    if host is None:
        host = settings.server.host

    app = create_app(settings=settings)

    logging.getLogger("hypercollection").info(f"Server running at host {host} port {port}")
    uvicorn.run(
        "hypercollection.api:api.app" if args.reload else app,
        port=port,
        host=host,
        reload=args.reload,
        log_level="debug" if args.debug else "info",
        log_config=settings.logging.model_dump(),
        access_log=not args.no_access_log,
        proxy_headers=True,
        root_path=args.root_path
    )
    return 0


def read_resources(file: str) -> List[Dict[str, Any]]:
    if file == "-":
        resources = json.load(sys.stdin)
    else:
        with open(file, "r", encoding="UTF-8") as f:
            resources = json.load(f)
    if not isinstance(resources, list):
        raise ValueError(f"Expected a JSON array of resources, got {type(resources).__name__}")
    return resources


def evaluate_resources(args: argparse.Namespace) -> int:
    try:
        resources = read_resources(args.file)
    except (OSError, ValueError) as exc:
        print(f"Failed to read the resources: {exc}", file=sys.stderr)
        return 1

    query: Dict[str, Optional[str]] = {
        "sort": args.sort,
        "reverse": "true" if args.reverse else "false",
        "limit": args.limit,
        "offset": args.offset,
        "details": args.details
    }
    try:
        envelope = evaluate(resources, query, key=args.key, nulls=NullOrdering(args.nulls))
    except InvalidParameter as exc:
        print(exc.message, file=sys.stderr)
        return 1
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    print(json.dumps(envelope.model_dump(mode="json"), indent=args.indent))
    return 0


def main(argv: Optional[List[str]] = None, program: str = "hypercollection") -> int:
    namespace = get_parser(program).parse_args(argv)

    command_functions = {
        "init": init_project,
        "run": run_server,
        "evaluate": evaluate_resources
    }
    return command_functions[namespace.command](namespace)


if __name__ == '__main__':
    program_name = sys.argv[0] if not sys.argv[0].endswith("__main__.py") else "hypercollection"
    exit(main(sys.argv[1:], program_name))
