#!/usr/bin/env python3
"""docgen — CLI for the document generator.

Usage:
    python scripts/docgen.py generate --request <DocumentRequest.json>
        [--cache-dir DIR] [--user-json FILE] [--site-json FILE]
        [--log-level LEVEL] [--json-logs]
    python scripts/docgen.py sweep-cache --cache-dir DIR

Subcommands:
    generate      Validate a request file against DocumentRequest.v1.json,
                  generate the document and print ``OK: <output path>``.
                  Relative paths in the request are taken relative to the
                  request file's directory.
    sweep-cache   Delete expired QR cache entries and print how many.

Exit codes:
    0  — success
    1  — generation error or invalid request
    2  — invalid usage or missing input file
"""

import argparse
import json
import sys
from pathlib import Path

import jsonschema
from pydantic import ValidationError

# Ensure project root is on sys.path so app/*, engine/* ... are importable
# when the script is invoked from any working directory.
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.config import DocGenSettings  # noqa: E402
from app.errors import DocGenError  # noqa: E402
from app.models.document_request import DocumentRequest  # noqa: E402
from app.utils.logging import configure_logging  # noqa: E402
from cache.asset_cache import AssetCache  # noqa: E402
from cache.provisioning import provision_directory  # noqa: E402
from converters.soffice import LibreOfficeConverter  # noqa: E402
from engine.generator import DocumentGenerator  # noqa: E402
from engine.template import TemplateEngine  # noqa: E402
from models.resolution import ResolverEnv, SiteInfo, UserInfo  # noqa: E402

# ---------------------------------------------------------------------------
# Contract schema: loaded once at import time relative to project root.
# ---------------------------------------------------------------------------
_CONTRACTS_DIR = Path(__file__).resolve().parent.parent / "contracts"
_SCHEMA_REQUEST = json.loads((_CONTRACTS_DIR / "DocumentRequest.v1.json").read_text(encoding="utf-8"))


def _load_json(path: Path, label: str) -> dict:
    """Read a JSON object; exit 2 when missing, 1 when malformed."""
    if not path.is_file():
        print(f"ERROR: {label} file not found: {path}", file=sys.stderr)
        sys.exit(2)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        print(f"ERROR: failed to load {path}: {exc}", file=sys.stderr)
        sys.exit(1)
    if not isinstance(payload, dict):
        print(f"ERROR: {label} file must contain a JSON object: {path}", file=sys.stderr)
        sys.exit(1)
    return payload


def _anchor(path_str: str, base: Path) -> Path:
    path = Path(path_str).expanduser()
    return path if path.is_absolute() else base / path


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------

def cmd_generate(args: argparse.Namespace) -> int:
    request_path = Path(args.request)
    raw = _load_json(request_path, "request")

    try:
        jsonschema.validate(instance=raw, schema=_SCHEMA_REQUEST)
    except jsonschema.ValidationError as exc:
        print(
            f"ERROR: request does not conform to DocumentRequest.v1.json: {exc.message}",
            file=sys.stderr,
        )
        return 1

    base = request_path.resolve().parent
    raw["template_path"] = str(_anchor(raw["template_path"], base))
    raw["temp_dir"] = str(_anchor(raw["temp_dir"], base))

    try:
        request = DocumentRequest.model_validate(raw)
        user = UserInfo.model_validate(_load_json(Path(args.user_json), "user")) if args.user_json else UserInfo()
        site = SiteInfo.model_validate(_load_json(Path(args.site_json), "site")) if args.site_json else SiteInfo()
        settings = DocGenSettings.from_env(cache_dir=args.cache_dir)
    except ValidationError as exc:
        print(f"ERROR: invalid input: {exc}", file=sys.stderr)
        return 1

    try:
        provision_directory(settings.cache_dir)
    except OSError as exc:
        print(f"ERROR: cannot create cache dir {settings.cache_dir}: {exc}", file=sys.stderr)
        return 1

    env = ResolverEnv(user=user, site=site, settings=settings)
    engine = TemplateEngine(env, cache=AssetCache.from_settings(settings))
    converter = LibreOfficeConverter(settings.soffice_binary, timeout=settings.convert_timeout)
    generator = DocumentGenerator(engine, converter=converter)

    try:
        output = generator.generate(request)
    except DocGenError as exc:
        print(f"{exc} [{exc.code}]", file=sys.stderr)
        return 1

    print(f"OK: {output}")
    return 0


# ---------------------------------------------------------------------------
# sweep-cache
# ---------------------------------------------------------------------------

def cmd_sweep_cache(args: argparse.Namespace) -> int:
    cache_dir = Path(args.cache_dir)
    if not cache_dir.is_dir():
        print(f"ERROR: cache dir not found: {cache_dir}", file=sys.stderr)
        return 2

    settings = DocGenSettings.from_env(cache_dir=cache_dir)
    removed = AssetCache.from_settings(settings).sweep()
    print(f"OK: {removed} expired entries removed from {cache_dir}")
    return 0


# ---------------------------------------------------------------------------
# entry point
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="docgen", description=__doc__,
                                     formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--log-level", default="WARNING", metavar="LEVEL",
                        help="Minimum log level written to stderr (default WARNING).")
    parser.add_argument("--json-logs", action="store_true",
                        help="Render log events as JSON lines.")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate one document from a request file.")
    gen.add_argument("--request", "-r", required=True, metavar="PATH",
                     help="DocumentRequest JSON file.")
    gen.add_argument("--cache-dir", default=None, metavar="DIR",
                     help="QR cache directory (default: DOCGEN_CACHE_DIR or a temp dir).")
    gen.add_argument("--user-json", default=None, metavar="PATH",
                     help="JSON object with display_name, email, roles ...")
    gen.add_argument("--site-json", default=None, metavar="PATH",
                     help="JSON object with name, url, description, admin_email, version.")
    gen.set_defaults(func=cmd_generate)

    sweep = sub.add_parser("sweep-cache", help="Delete expired QR cache entries.")
    sweep.add_argument("--cache-dir", required=True, metavar="DIR")
    sweep.set_defaults(func=cmd_sweep_cache)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, json_output=args.json_logs)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
