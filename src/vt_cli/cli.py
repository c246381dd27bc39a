"""Command-line client for the Val Town API."""

from __future__ import annotations

import argparse
import sys
from typing import Callable, Iterable, Mapping, MutableMapping, Optional, Sequence

import httpx

from . import __version__
from .arguments import encode_payload, eval_payload, parse_args_array, query_payload, run_payload
from .client import RequestSpec, build_client, execute
from .config import API_URL_ENV, TOKEN_ENV, ClientConfig, env, load_config
from .errors import CliError, ConfigurationError, ResponseDecodeError
from .logging import LOG_FORMATS, configure_logging, get_logger
from .render import (
    NO_VALUE,
    ApiResponse,
    decode_response,
    is_result_set,
    render,
    render_table,
    render_text,
)
from .stdin import StandardInput
from .targets import (
    alias_url,
    build_target_url,
    eval_url,
    infer_method,
    parse_val_identifier,
    run_url,
    sqlite_url,
)

logger = get_logger("vt.cli")

Handler = Callable[[ClientConfig, httpx.Client, argparse.Namespace, StandardInput], None]

STDIN_DATA = "@-"


def _global_options(parser: argparse.ArgumentParser, suppress: bool) -> None:
    # Subcommands repeat the options with SUPPRESS defaults so a flag given
    # after the subcommand name overrides the top-level value.
    def default(value: object) -> object:
        return argparse.SUPPRESS if suppress else value

    parser.add_argument(
        "--token",
        "-t",
        default=default(None),
        help=(
            f"API token (overrides env: {TOKEN_ENV} and the token file "
            "~/.config/vt/api_token)."
        ),
    )
    parser.add_argument(
        "--output",
        choices=["json", "yaml"],
        default=default(env("OUTPUT", "json")),
        help="Output format for responses (env: VT_OUTPUT). Defaults to 'json'.",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        default=default(False),
        help="Disable syntax highlighting of JSON on a terminal (also disabled by NO_COLOR).",
    )
    parser.add_argument(
        "--log-level",
        default=default(env("LOG_LEVEL", "WARNING")),
        help="Log level for diagnostics on stderr (env: VT_LOG_LEVEL). Defaults to WARNING.",
    )
    parser.add_argument(
        "--log-format",
        choices=list(LOG_FORMATS),
        default=default(env("LOG_FORMAT", "plain")),
        help="Log record format (env: VT_LOG_FORMAT).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vt",
        description=(
            "CLI for the Val Town API. Reads the token from --token, "
            f"{TOKEN_ENV} or ~/.config/vt/api_token and prints JSON (default) or YAML. "
            "Examples: `vt eval '1 + 1'`, `vt run @me.add 1 2`, `vt api /me`."
        ),
    )
    _global_options(parser, suppress=False)
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    common = argparse.ArgumentParser(add_help=False)
    _global_options(common, suppress=True)

    subparsers = parser.add_subparsers(dest="command", required=False)
    _add_eval_command(subparsers, common)
    _add_run_command(subparsers, common)
    _add_api_command(subparsers, common)
    _add_query_command(subparsers, common)
    _add_print_commands(subparsers, common)
    return parser


def _add_eval_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    common: argparse.ArgumentParser,
) -> None:
    eval_cmd = subparsers.add_parser(
        "eval",
        parents=[common],
        help="Evaluate an expression (POST /v1/eval) and print the result",
        description=(
            "Sends {code, args} to the eval endpoint. The expression is read from "
            "standard input when omitted and input is piped. Each extra argument "
            "is parsed as JSON when possible, otherwise sent as a string."
        ),
    )
    eval_cmd.add_argument("expression", nargs="?", help="Code to evaluate")
    eval_cmd.add_argument("args", nargs="*", help="Arguments passed to the expression")
    eval_cmd.add_argument(
        "--args",
        dest="args_json",
        metavar="JSON",
        help="Arguments as a JSON array, instead of positional arguments",
    )
    eval_cmd.set_defaults(func=_cmd_eval)


def _add_run_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    common: argparse.ArgumentParser,
) -> None:
    run = subparsers.add_parser(
        "run",
        parents=[common],
        help="Run a val (POST /v1/run/<owner>.<name>) and print the result",
        description=(
            "Calls a val with positional arguments. Arguments are parsed as JSON "
            "when possible (`42`, `true`, `[1,2]`), otherwise sent as strings. "
            "Without arguments, piped standard input becomes the single argument."
        ),
    )
    run.add_argument("val", help="Val identifier, e.g. @owner.name")
    run.add_argument("args", nargs="*", help="Arguments passed to the val")
    run.set_defaults(func=_cmd_run)


def _add_api_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    common: argparse.ArgumentParser,
) -> None:
    api = subparsers.add_parser(
        "api",
        parents=[common],
        help="Make an authenticated HTTP request to the Val Town API and print the response",
        description=(
            f"Paths are resolved against the API root (env: {API_URL_ENV}); `me` and "
            "`/v1/me` are equivalent. The request body comes from --data, or from piped "
            "standard input; with a body the method defaults to POST instead of GET."
        ),
    )
    api.add_argument("endpoint", help="API path or full URL")
    api.add_argument("--method", "-X", help="HTTP method (default: GET, or POST with a body)")
    api.add_argument(
        "--header",
        "-H",
        action="append",
        default=[],
        help="Extra request header as 'Name: value' (repeatable)",
    )
    api.add_argument(
        "--data",
        "-d",
        help=f"Request body; '{STDIN_DATA}' reads it from standard input",
    )
    api.set_defaults(func=_cmd_api)


def _add_query_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    common: argparse.ArgumentParser,
) -> None:
    query = subparsers.add_parser(
        "query",
        parents=[common],
        help="Execute a SQLite statement (POST /v1/sqlite/execute)",
        description=(
            "Runs one statement against your Val Town SQLite database. Results are "
            "shown as a table on a terminal and as JSON/YAML otherwise."
        ),
    )
    query.add_argument("statement", help="SQL statement")
    query.set_defaults(func=_cmd_query)


def _add_print_commands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    common: argparse.ArgumentParser,
) -> None:
    print_cmd = subparsers.add_parser(
        "print",
        parents=[common],
        help="Print the resolved token or the source of a val",
    )
    print_sub = print_cmd.add_subparsers(dest="print_command", required=True)

    token = print_sub.add_parser("token", parents=[common], help="Print the resolved API token")
    token.set_defaults(func=_cmd_print_token)

    val = print_sub.add_parser(
        "val",
        parents=[common],
        help="Print the code of a val (GET /v1/alias/<owner>/<name>)",
    )
    val.add_argument("val", help="Val identifier, e.g. @owner.name")
    val.set_defaults(func=_cmd_print_val)


def _stdout_is_terminal() -> bool:
    return sys.stdout.isatty()


def _print_output(data: ApiResponse, config: ClientConfig) -> None:
    highlight = config.output == "json" and config.color and _stdout_is_terminal()
    render(data, sys.stdout, config.output, highlight=highlight)


def _parse_headers(values: Sequence[str]) -> Mapping[str, str]:
    headers: MutableMapping[str, str] = {}
    for value in values:
        name, sep, content = value.partition(":")
        if not sep or not name.strip():
            raise ConfigurationError(f"invalid header {value!r} (expected 'Name: value')")
        headers[name.strip()] = content.strip()
    return headers


def _strip_newline(text: str) -> str:
    if text.endswith("\r\n"):
        return text[:-2]
    if text.endswith("\n"):
        return text[:-1]
    return text


def _request_body(data: Optional[str], stdin: StandardInput) -> Optional[bytes]:
    if data == STDIN_DATA:
        return stdin.read_all() or None
    if data is not None:
        return data.encode("utf-8") or None
    return stdin.read_piped() or None


def _cmd_eval(
    config: ClientConfig, client: httpx.Client, args: argparse.Namespace, stdin: StandardInput
) -> None:
    expression = args.expression
    if expression is None:
        expression = stdin.read_piped_text()
    if expression is None or not expression.strip():
        raise ConfigurationError("expression required")

    payload = eval_payload(expression, args.args)
    if args.args_json is not None:
        if args.args:
            raise ConfigurationError("pass arguments either with --args or positionally, not both")
        try:
            payload["args"] = parse_args_array(args.args_json)
        except ValueError as exc:
            raise ConfigurationError(f"invalid --args: {exc}") from exc

    spec = RequestSpec(
        method="POST",
        url=eval_url(config.api_root),
        body=encode_payload(payload),
        token=config.token,
    )
    response = execute(client, spec)
    _print_output(decode_response(response.content), config)


def _cmd_run(
    config: ClientConfig, client: httpx.Client, args: argparse.Namespace, stdin: StandardInput
) -> None:
    ident = parse_val_identifier(args.val)
    arguments = list(args.args)
    if not arguments:
        piped = stdin.read_piped_text()
        if piped:
            arguments = [_strip_newline(piped)]

    logger.debug("Running val", extra={"val": ident.slug, "arg_count": len(arguments)})
    spec = RequestSpec(
        method="POST",
        url=run_url(config.api_root, ident),
        body=encode_payload(run_payload(arguments)),
        token=config.token,
    )
    response = execute(client, spec)
    _print_output(decode_response(response.content), config)


def _cmd_api(
    config: ClientConfig, client: httpx.Client, args: argparse.Namespace, stdin: StandardInput
) -> None:
    headers = _parse_headers(args.header)
    body = _request_body(args.data, stdin)
    method = infer_method(args.method, body)
    spec = RequestSpec(
        method=method,
        url=build_target_url(args.endpoint, config.api_root),
        body=body,
        token=config.token,
        headers=headers,
    )
    response = execute(client, spec)
    _print_output(decode_response(response.content), config)


def _cmd_query(
    config: ClientConfig, client: httpx.Client, args: argparse.Namespace, stdin: StandardInput
) -> None:
    spec = RequestSpec(
        method="POST",
        url=sqlite_url(config.api_root),
        body=encode_payload(query_payload(args.statement)),
        token=config.token,
    )
    data = decode_response(execute(client, spec).content)
    if config.output == "json" and _stdout_is_terminal() and is_result_set(data):
        render_table(data, sys.stdout)
        return
    _print_output(data, config)


def _cmd_print_token(
    config: ClientConfig, client: httpx.Client, args: argparse.Namespace, stdin: StandardInput
) -> None:
    render_text(config.token or "", sys.stdout)


def _cmd_print_val(
    config: ClientConfig, client: httpx.Client, args: argparse.Namespace, stdin: StandardInput
) -> None:
    ident = parse_val_identifier(args.val)
    spec = RequestSpec(method="GET", url=alias_url(config.api_root, ident), token=config.token)
    data = decode_response(execute(client, spec).content)
    if data is NO_VALUE:
        render_text("", sys.stdout)
        return
    if not isinstance(data, dict):
        raise ResponseDecodeError("unexpected response: expected a val object")
    code = data.get("code")
    render_text(code if isinstance(code, str) else "", sys.stdout)


def main(
    argv: Optional[Iterable[str]] = None,
    stdin: Optional[StandardInput] = None,
    transport: Optional[httpx.BaseTransport] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> None:
    parser = _build_parser()
    args = parser.parse_args(args=argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        try:
            configure_logging(args.log_level, args.log_format)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
        config = load_config(args, environ)
        logger.debug("Configuration loaded", extra={"config": config.logging_dict()})

        client = build_client(config, transport)
        with client:
            func: Handler = args.func
            func(config, client, args, stdin or StandardInput.from_sys())
    except CliError as exc:
        logger.debug("Command failed", extra={"error_type": type(exc).__name__})
        sys.stderr.write(f"Error: {exc}\n")
        sys.exit(exc.exit_code)


if __name__ == "__main__":
    main()
