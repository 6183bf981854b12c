import argparse
import sys
from pathlib import Path

from pdf_ingest.config.settings import Settings
from pdf_ingest.ingestion import (
    IngestionError,
    IngestionLimits,
    IngestionOrchestrator,
    UploadCandidate,
    build_orchestrator,
)
from pdf_ingest.logging.logger import Log
from pdf_ingest.pdf.compressor import recommend
from pdf_ingest.pdf.validator import is_pdf
from pdf_ingest.storage.http import build_http_client


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdf-ingest",
        description="Store PDFs in the configured object stores.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    ingest = sub.add_parser("ingest", help="validate, compress if needed and upload a PDF")
    ingest.add_argument("path", type=Path)
    ingest.add_argument(
        "--allow-large-files",
        action="store_true",
        help="upload even if compression cannot reach the primary limit",
    )

    delete = sub.add_parser("delete", help="delete a previously stored PDF by URL")
    delete.add_argument("url")

    sub.add_parser("check", help="test credentials of every configured store")

    inspect = sub.add_parser("inspect", help="report size diagnostics without uploading")
    inspect.add_argument("path", type=Path)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point: load settings -> build orchestrator -> run one command."""
    args = build_parser().parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)

    if args.command == "inspect":
        return _inspect(args.path, settings)

    client = build_http_client(settings.storage_timeout_seconds)
    try:
        return _run(args, build_orchestrator(settings, client=client), settings)
    finally:
        client.close()


def _run(
    args: argparse.Namespace,
    orchestrator: IngestionOrchestrator,
    settings: Settings,
) -> int:
    if args.command == "ingest":
        limits = IngestionLimits(
            primary_limit_bytes=settings.primary_limit_bytes,
            allow_large_files=settings.allow_large_files or args.allow_large_files,
        )
        candidate = UploadCandidate(buffer=args.path.read_bytes(), original_name=args.path.name)
        try:
            result = orchestrator.ingest(candidate, limits)
        except IngestionError as exc:
            print(f"error ({exc.status_code}): {exc}", file=sys.stderr)
            return 1
        print(result.url)
        return 2 if result.degraded else 0

    if args.command == "delete":
        deletion = orchestrator.delete(args.url)
        print(f"deleted={deletion.deleted} skipped={deletion.skipped}")
        return 0

    statuses = orchestrator.check_connections()
    if not statuses:
        print("no stores configured")
        return 1
    for name, ok in statuses.items():
        print(f"{name}: {'ok' if ok else 'FAILED'}")
    return 0 if all(statuses.values()) else 1


def _inspect(path: Path, settings: Settings) -> int:
    buffer = path.read_bytes()
    if not is_pdf(buffer):
        print(f"{path.name}: not a PDF", file=sys.stderr)
        return 1
    rec = recommend(buffer, settings.primary_limit_bytes)
    print(f"{path.name}: {rec.current_size_mb} MB (limit {rec.max_size_mb} MB)")
    if rec.needs_compression:
        print(f"over limit by {rec.excess_size_mb} MB, suggested tier: {rec.suggested_tier.value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
