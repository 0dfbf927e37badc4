"""
indexprof - command line entry point

Reports how often each index of a schema was used by the SELECT statements in
the TiDB statement summary window (about the last 30 minutes), including
indexes that were never used, plus the statements that scanned whole tables.

Example:

  create table t(a varchar(255), b varchar(255), c int, key a(a), key b(b), key c(c));
  select * from t;
  select * from t where a='a';
  select * from t where a='aa';
  select * from t where a='aaa' or c = 4;

  $ indexprof -u test -p test -H localhost -P 4000 --db test

  --- Index usage stat:
  {
    "t": {
      "t:a": 3,
      "t:b": 0,
      "t:c": 1
    }
  }
  --- Full table scan samples:
  [
    {
      "digest_text": "select * from `t`",
      ...
    }
  ]

Exit code 0 when a report was produced, 1 on any error (no partial output).
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from indexprof import __app_name__, __version__
from indexprof.core.config import Settings
from indexprof.core.constants import SampleSourceType, CatalogFlavor, OutputFormat
from indexprof.core.exceptions import IndexProfError
from indexprof.core.logger import setup_logging, get_logger, log_exception
from indexprof.database.connection import DatabaseConnection
from indexprof.models.connection_profile import ConnectionProfile
from indexprof.models.index_usage_models import UsageReport
from indexprof.services.profiler_service import IndexProfilerService

logger = get_logger('main')


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog=__app_name__,
        description="Index usage and full table scan report from TiDB statement summaries",
    )
    p.add_argument("-u", "--user", help="TiDB user")
    p.add_argument("-p", "--password", help="TiDB password")
    p.add_argument("-H", "--host", help="TiDB host")
    p.add_argument("-P", "--port", type=int, help="TiDB port")
    p.add_argument("-db", "--db", dest="database", help="Database (schema) to profile")
    p.add_argument("-l", "--log-level", dest="log_level", help="Log level (debug, info, warning, error)")
    p.add_argument("--config", type=Path, help="JSON settings file")
    p.add_argument(
        "--source",
        choices=[s.value for s in SampleSourceType],
        help="Sample source",
    )
    p.add_argument(
        "--local",
        action="store_true",
        help="Read the connected node's summary table instead of the cluster-wide one",
    )
    p.add_argument(
        "--catalog",
        choices=[c.value for c in CatalogFlavor],
        help="Metadata tables used to list indexes",
    )
    p.add_argument("--workers", type=int, help="Aggregation threads")
    p.add_argument(
        "--format",
        choices=[f.value for f in OutputFormat],
        default=OutputFormat.TEXT.value,
        help="text: two JSON documents with headers; json: one combined document",
    )
    p.add_argument("-o", "--output", type=Path, help="Write the report to this file instead of stdout")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def load_settings(args: argparse.Namespace) -> Settings:
    """Settings from file/env with command line flags on top"""
    settings = Settings.load(args.config)
    return settings.with_overrides(
        database={
            "user": args.user,
            "password": args.password,
            "host": args.host,
            "port": args.port,
            "name": args.database,
        },
        logging={"level": args.log_level},
        profiler={
            "sample_source": args.source,
            "cluster_scope": False if args.local else None,
            "catalog_flavor": args.catalog,
            "workers": args.workers,
        },
    )


def render_report(report: UsageReport, output_format: str = OutputFormat.TEXT.value) -> str:
    if OutputFormat(output_format) == OutputFormat.JSON:
        return report.to_json() + "\n"
    return "\n".join([
        "--- Index usage stat:",
        report.usage_json(),
        "--- Full table scan samples:",
        report.full_scan_json(),
    ]) + "\n"


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args)
    except IndexProfError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(
        level=settings.logging.level,
        log_dir=settings.logging.log_dir,
        file_enabled=settings.logging.file_enabled,
        retention_days=settings.logging.retention_days,
    )
    logger.info(f"Starting {__app_name__} v{__version__}")

    profile = ConnectionProfile.from_settings(settings.database)
    logger.debug(f"Connection profile: {profile.to_dict()}")

    try:
        with DatabaseConnection(profile, settings.database) as conn:
            report = IndexProfilerService(conn, settings).run()
    except IndexProfError as e:
        logger.error(f"Profiling {profile.display_name} failed: {e}")
        return 1
    except Exception as e:
        log_exception(logger, e, f"Unexpected error while profiling {profile.display_name}")
        return 1

    text = render_report(report, args.format)
    if args.output:
        try:
            args.output.write_text(text, encoding="utf-8")
        except OSError as e:
            logger.error(f"Cannot write report to {args.output}: {e}")
            return 1
        logger.info(f"Report written to {args.output}")
    else:
        sys.stdout.write(text)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
