from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import CleanerConfig, ConfigError, load_config, resolve_config_path
from ..logging.init import log_summary, setup_logging
from ..models.entity_row import EntityKind
from ..rules.model import RuleContext, RuleSet, RuleValidationError, load_rules_file
from ..services.export import export_all
from ..services.orchestrator import ProcessingError, locate_entity_files, process_all
from ..services.summary import render_summary_line
from ..tabular.reader import load_entity_file

"""CLI entrypoint.

Flow:
- Load .env, then the YAML config
- Validate every configured entity file and write the JSON Lines error log
- Print the SUMMARY line
- With --export, write cleaned CSVs and rules.json to output_directory

Exit codes: 0 clean, 2 validation errors or failed files, 1 fatal.
"""

EXIT_CLEAN = 0
EXIT_FATAL = 1
EXIT_VALIDATION_ERRORS = 2

INSPECT_SAMPLE_ROWS = 3


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so ALLOC_CLEANER_CONFIG can be set per checkout."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Validate and export client / worker / task allocation data")
    p.add_argument("--config", help="Path to the YAML config (default: config/cleaner.yml)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print headers & first rows per entity then exit")
    p.add_argument("--export", action="store_true", help="Write cleaned CSVs and rules.json to output_directory")
    return p.parse_args(argv)


def _inspect_data(cfg: CleanerConfig) -> int:
    try:
        files = locate_entity_files(cfg)
    except ProcessingError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    for entity_file in files:
        print(f"FILE: {entity_file.name} ({entity_file.entity.collection})")
        try:
            sheet = load_entity_file(entity_file.path, entity_file.entity, null_sentinels=cfg.null_sentinels)
        except Exception as e:  # pragma: no cover
            print(f"  read_error: {e}")
            continue
        print(f"  cols={sheet.columns}")
        if sheet.missing_headers:
            print(f"  missing_headers={sheet.missing_headers}")
        safe_rows = [
            {k: (v.isoformat() if hasattr(v, "isoformat") else v) for k, v in r.items()}
            for r in sheet.rows[:INSPECT_SAMPLE_ROWS]
        ]
        print("  sample_rows=", safe_rows)
    return EXIT_CLEAN


def _build_rule_set(cfg: CleanerConfig, rows: dict[EntityKind, list[dict]]) -> RuleSet:
    context = RuleContext.from_rows(
        clients=rows.get(EntityKind.CLIENT, []),
        workers=rows.get(EntityKind.WORKER, []),
        tasks=rows.get(EntityKind.TASK, []),
    )
    if cfg.rules_file:
        rule_set = load_rules_file(Path(cfg.rules_file), context)
    else:
        rule_set = RuleSet(context=context)
    rule_set.priorities.update(cfg.priorities)
    return rule_set


def main(argv: list[str] | None = None) -> int:
    # None のときのみ sys.argv を読む (テストで main([]) を呼ぶため)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    if args.debug:
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)
    config_path = resolve_config_path(args.config)
    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    directory = Path(cfg.source_directory)
    if not directory.exists():
        logger.error(f"directory not found: {directory}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(cfg)

    logger.info(f"Validating files from: {directory}")
    try:
        report = process_all(cfg)
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL

    for err in report.errors:
        where = f"{err.entity.value}[{err.row_id or '?'}]"
        logger.warning(f"{where} {err.field or '<table>'}: {err.message}")

    if args.export:
        try:
            rule_set = _build_rule_set(cfg, report.rows)
        except RuleValidationError as e:
            logger.error(f"rules: {e}")
            return EXIT_FATAL
        payload = rule_set.to_payload()
        written = export_all(
            Path(cfg.output_directory),
            clients=report.rows.get(EntityKind.CLIENT, []),
            workers=report.rows.get(EntityKind.WORKER, []),
            tasks=report.rows.get(EntityKind.TASK, []),
            rules=payload["rules"],
            priorities=payload["priorities"],
        )
        for path in written:
            logger.info(f"exported {path}")

    summary_line = render_summary_line(report)
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line.removeprefix("SUMMARY "))

    if report.is_clean:
        return EXIT_CLEAN
    return EXIT_VALIDATION_ERRORS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
