"""Command line entry point.

    gatehouse serve [--app dispatch|proxy] [--host H] [--port P]
    gatehouse generate-wrapper --module worker --project-id P --org-id O \
        [--actor Counter ...] [--vector-binding VECTORS=index ...] [-o entry.py]
    gatehouse generate-wrapper --spec-file wrapper.json
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from gatehouse.config import get_settings
from gatehouse.observability.logging import get_logger, setup_logging
from gatehouse.wrapper import WrapperValidationError, generate_metering_wrapper

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2


def _parse_binding(value: str) -> dict[str, str]:
    binding_name, sep, index_name = value.partition("=")
    if not sep or not binding_name or not index_name:
        raise argparse.ArgumentTypeError(
            f"expected BINDING=INDEX, got {value!r}"
        )
    return {"bindingName": binding_name, "indexName": index_name}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gatehouse",
        description="Edge dispatch and usage metering for hosted tenants",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the dispatcher or binding proxy")
    serve.add_argument(
        "--app",
        choices=["dispatch", "proxy"],
        default="dispatch",
        help="Which application to serve",
    )
    serve.add_argument("--host", help="Bind address (default: api.host)")
    serve.add_argument("--port", type=int, help="Port (default: api.port or api.proxy_port)")

    generate = subparsers.add_parser(
        "generate-wrapper",
        help="Generate a metering entry module for a tenant module",
    )
    generate.add_argument("--spec-file", type=Path, help="JSON wrapper spec")
    generate.add_argument("--module", dest="original_module", help="Tenant module reference")
    generate.add_argument("--project-id", help="Project id baked into the module")
    generate.add_argument("--org-id", help="Organization id baked into the module")
    generate.add_argument(
        "--actor",
        action="append",
        default=[],
        dest="actors",
        help="Actor class to meter (repeatable)",
    )
    generate.add_argument(
        "--vector-binding",
        action="append",
        default=[],
        dest="vector_bindings",
        type=_parse_binding,
        help="BINDING=INDEX vector index binding to proxy (repeatable)",
    )
    generate.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Write the module here instead of stdout",
    )
    return parser


def _spec_from_args(args: argparse.Namespace) -> dict[str, Any]:
    if args.spec_file is not None:
        data: dict[str, Any] = json.loads(args.spec_file.read_text())
    else:
        data = {}

    overrides = {
        "originalModule": args.original_module,
        "projectId": args.project_id,
        "orgId": args.org_id,
    }
    for key, value in overrides.items():
        if value is not None:
            data[key] = value
    data.setdefault("originalModule", "")
    if args.actors:
        data["doClassNames"] = args.actors
    if args.vector_bindings:
        data["vectorizeBindings"] = args.vector_bindings
    return data


def generate_wrapper_command(args: argparse.Namespace) -> int:
    try:
        spec = _spec_from_args(args)
        source = generate_metering_wrapper(spec)
    except (WrapperValidationError, json.JSONDecodeError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    if args.output is None:
        sys.stdout.write(source)
    else:
        args.output.write_text(source)
        logger.info("metering_wrapper_written", path=str(args.output))
    return EXIT_OK


def serve_command(args: argparse.Namespace) -> int:
    import uvicorn

    from gatehouse.api.app import configure_observability

    settings = get_settings()
    configure_observability(settings)

    if args.app == "proxy":
        target = "gatehouse.proxy.server:create_proxy_app"
        default_port = settings.api.proxy_port
    else:
        target = "gatehouse.api.app:create_app"
        default_port = settings.api.port

    uvicorn.run(
        target,
        factory=True,
        host=args.host or settings.api.host,
        port=args.port or default_port,
        workers=settings.api.workers,
    )
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # stdout may carry generated source; logs go to stderr
    log_config = get_settings().observability.logging
    setup_logging(
        level=log_config.level,
        format=log_config.format,
        redact_secrets=log_config.redact_secrets,
    )

    if args.command == "serve":
        return serve_command(args)
    return generate_wrapper_command(args)


if __name__ == "__main__":
    sys.exit(main())
