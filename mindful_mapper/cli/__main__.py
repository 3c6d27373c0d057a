from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from mindful_mapper.config.loader import ConfigError, apply_env_overrides, load_config
from mindful_mapper.db.connection import open_store
from mindful_mapper.logging.init import log_summary, set_debug, setup_logging
from mindful_mapper.models.field_path import MappingError
from mindful_mapper.models.results import CommandResult
from mindful_mapper.services.commands import CommandContext, export_excel, import_excel, view_stats

"""CLI entrypoint.

    mindful-mapper [--config PATH] [--debug] import FILE [--map FIELD=HEADER ...]
    mindful-mapper export OUTPUT [--collection C]
    mindful-mapper stats [--collection C]
    mindful-mapper serve

Flow: parse args -> load .env (override) -> load config + env overrides ->
open the store once -> run the command -> SUMMARY line / exit code.
"""

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv.

    override=True: .env の値で既存環境変数を上書きし、接続情報を最優先化。
    """
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="mindful-mapper",
        description="Excel -> MongoDB / PostgreSQL importer with column mapping and sequential IDs",
    )
    p.add_argument("--config", type=Path, default=None, help="YAML config (default: config/mapper.yml if present)")
    p.add_argument("--env-file", type=Path, default=Path(".env"), help="dotenv file to load")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Import an Excel file into a collection")
    imp.add_argument("file", help="Path to the .xlsx file")
    imp.add_argument("--collection", help="Target collection / table")
    imp.add_argument(
        "--map",
        dest="mappings",
        action="append",
        default=[],
        metavar="FIELD=HEADER",
        help="Column mapping entry, repeatable (e.g. --map 'name.en=Product Name EN')",
    )
    imp.add_argument("--mapping-file", type=Path, help="YAML/JSON file with {field: header}")
    imp.add_argument("--clear-existing", action="store_true", help="Delete existing records and reset the ID counter")
    imp.add_argument("--no-generate-id", dest="generate_id", action="store_false", help="Do not attach sequential IDs")
    imp.add_argument("--id-prefix", help="Prefix for generated IDs")
    imp.add_argument("--no-timestamps", dest="add_timestamps", action="store_false", help="Do not attach createdAt/updatedAt")

    exp = sub.add_parser("export", help="Export a collection to an Excel file")
    exp.add_argument("output", help="Output .xlsx path")
    exp.add_argument("--collection", help="Source collection / table")

    st = sub.add_parser("stats", help="Show collection statistics and ID tracking")
    st.add_argument("--collection", help="Collection / table to analyze")

    sub.add_parser("serve", help="Run the MCP server over stdio")
    return p.parse_args(argv)


def _build_mapping(args: argparse.Namespace) -> dict[str, Any]:
    """Merge --mapping-file and --map entries (--map wins on duplicates).

    Raises:
        MappingError: unreadable file, non-mapping content or FIELD=HEADER syntax error
    """
    mapping: dict[str, Any] = {}
    if args.mapping_file is not None:
        try:
            data = yaml.safe_load(args.mapping_file.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            raise MappingError(f"cannot read mapping file {args.mapping_file}: {e}") from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise MappingError(f"mapping file must contain a mapping: {args.mapping_file}")
        mapping.update(data)
    for entry in args.mappings:
        field, sep, header = entry.partition("=")
        if not sep:
            raise MappingError(f"invalid --map entry '{entry}': expected FIELD=HEADER")
        mapping[field.strip()] = header.strip()
    return mapping


def _run_command(ctx: CommandContext, args: argparse.Namespace) -> CommandResult:
    if args.command == "import":
        return import_excel(
            ctx,
            args.file,
            collection=args.collection,
            column_mapping=_build_mapping(args),
            clear_existing=args.clear_existing,
            generate_id=args.generate_id,
            id_prefix=args.id_prefix,
            add_timestamps=args.add_timestamps,
        )
    if args.command == "export":
        return export_excel(ctx, args.output, collection=args.collection)
    return view_stats(ctx, collection=args.collection)


def main(argv: list[str] | None = None) -> int:
    # NOTE: [] が渡された場合に sys.argv[1:] (pytest の引数) が混入しないよう None のときのみ読む
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    # serve: stdout は MCP プロトコル用なのでログは stderr へ
    logger = setup_logging(stream=sys.stderr if args.command == "serve" else None)
    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    _load_env_file(args.env_file, override=True)
    try:
        cfg = apply_env_overrides(load_config(args.config, required=args.config is not None))
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FAILURE

    store = open_store(cfg)
    ctx = CommandContext.create(cfg, store)
    try:
        if args.command == "serve":
            from mindful_mapper.server import run_server

            logger.info(f"serving MCP over stdio backend={cfg.database.backend}")
            run_server(ctx)
            return EXIT_SUCCESS
        try:
            result = _run_command(ctx, args)
        except MappingError as e:
            logger.error(f"mapping: {e}")
            return EXIT_FAILURE
    finally:
        store.close()

    if not result.ok:
        return EXIT_FAILURE
    log_summary(result.message)
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
