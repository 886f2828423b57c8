"""Entry point: python -m apigrade [--format FORMAT] [--fail-on LEVEL] <spec>"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from . import __version__
from .core.engine import BUNDLED_CATALOG, CatalogLoadError, RuleCatalog, RuleEngine
from .core.models import CONTEXTS, SEVERITY_RANK
from .ingest import SpecLoadError, load_api
from .report import build_report, render_markdown, render_text, to_json, to_sarif
from .scanners import collect_facts
from .settings import FAIL_ON_CHOICES, OUTPUT_FORMATS, ConfigError, load_config


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="apigrade",
        description="Static design review for REST API descriptions",
    )
    parser.add_argument("spec", nargs="?", help="OpenAPI/Swagger document or endpoint list")
    parser.add_argument("--format", choices=OUTPUT_FORMATS, dest="output_format", help="Output format (default: text)")
    parser.add_argument("--json", action="store_true", dest="json_output", help="Shorthand for --format json")
    parser.add_argument("--output", "-o", type=Path, help="Write the report to a file instead of stdout")
    parser.add_argument("--context", choices=CONTEXTS, help="Audience of the API (default: public)")
    parser.add_argument(
        "--fail-on",
        choices=FAIL_ON_CHOICES,
        help="Minimum severity that causes a non-zero exit code (default: critical)",
    )
    parser.add_argument("--rules", type=Path, help="Path to a custom rule catalog YAML")
    parser.add_argument("--disable", action="append", default=[], metavar="RULE_ID", help="Skip a rule (repeatable)")
    parser.add_argument("--config", type=Path, help="Path to a project config file")
    parser.add_argument("--list-rules", action="store_true", help="List the catalog rules and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    # Settings: CLI flags override the project config
    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    context = args.context or config.context
    fail_on = args.fail_on or config.fail_on
    output_format = "json" if args.json_output else (args.output_format or config.output_format)
    catalog_path = args.rules or config.rules_path or BUNDLED_CATALOG

    # Load rules
    try:
        catalog = RuleCatalog(catalog_path).select([*config.disabled_rules, *args.disable])
    except CatalogLoadError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.list_rules:
        for rule in catalog:
            severity = rule.severity_for(context)
            print(f"{rule.id:<9} {severity:<10} {rule.category:<16} {rule.title}")
        return 0

    if not args.spec:
        parser.print_usage(sys.stderr)
        print("error: an API description file is required", file=sys.stderr)
        return 1

    # Ingest
    try:
        api = load_api(Path(args.spec))
    except SpecLoadError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    # Evaluate
    facts = collect_facts(api)
    result = RuleEngine(catalog, context=context).evaluate(facts)
    report = build_report(api, result, context=context, source=args.spec)

    # Print warnings to stderr (all modes)
    for w in report.warnings:
        print(f"warning: {w}", file=sys.stderr)

    # Output
    if output_format == "json":
        rendered = json.dumps(
            to_json(report, facts, catalog_path=str(catalog_path), tool_version=__version__),
            indent=2, default=str,
        )
    elif output_format == "sarif":
        rendered = json.dumps(to_sarif(report, catalog, tool_version=__version__), indent=2)
    elif output_format == "markdown":
        rendered = render_markdown(report)
    else:
        rendered = render_text(report)

    if args.output:
        try:
            args.output.write_text(rendered if rendered.endswith("\n") else rendered + "\n", encoding="utf-8")
        except OSError as e:
            print(f"error: cannot write {args.output}: {e}", file=sys.stderr)
            return 1
    else:
        print(rendered)

    # Exit code based on --fail-on threshold
    if fail_on == "none":
        return 0
    threshold = SEVERITY_RANK[fail_on]
    return 1 if any(SEVERITY_RANK[f.severity] >= threshold for f in report.findings) else 0


if __name__ == "__main__":
    sys.exit(main())
