import argparse
import logging
import sys
from pathlib import Path

from tqdm import tqdm

from hanna_code.config import HannaSettings, create_repository
from hanna_code.errors import DuplicateNameError, HannaCodeError, InvalidImportError
from hanna_code.logging_setup import configure_logging
from hanna_code.snippet.repository import SORTS


logger = logging.getLogger("hanna_code")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Manage Hanna codes stored in a relational database"
    )
    parser.add_argument(
        "--database-url",
        help="SQLAlchemy database URL (default: HANNA_DATABASE_URL or sqlite:///hanna_code.db)",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (default: HANNA_LOG_LEVEL or INFO)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("install", help="Create the Hanna code table")
    commands.add_parser("uninstall", help="Drop the Hanna code table")

    list_parser = commands.add_parser("list", help="List Hanna codes")
    list_parser.add_argument(
        "--sort",
        default="name",
        choices=sorted(SORTS),
        help="Sort order (default: name)",
    )

    show_parser = commands.add_parser("show", help="Print one Hanna code")
    show_parser.add_argument("key", help="Name or id")

    delete_parser = commands.add_parser("delete", help="Delete one Hanna code")
    delete_parser.add_argument("key", help="Name or id")

    export_parser = commands.add_parser("export", help="Export one Hanna code")
    export_parser.add_argument("key", help="Name or id")
    export_parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Output file path (if not specified, prints to stdout)",
    )

    import_parser = commands.add_parser("import", help="Import exported Hanna codes")
    import_parser.add_argument("files", nargs="+", help="Files holding export text")
    import_parser.add_argument(
        "--replace",
        action="store_true",
        help="Overwrite existing codes with the same name (default: skip)",
    )
    return parser


def _run(args: argparse.Namespace, settings: HannaSettings) -> int:
    repository = create_repository(settings)

    if args.command == "install":
        repository.install()
        print(f"✅ Installed table {repository.table.name}")
        return 0

    if args.command == "uninstall":
        repository.uninstall()
        print(f"✅ Dropped table {repository.table.name}")
        return 0

    if args.command == "list":
        for snippet in repository.get_all(args.sort):
            flag = "" if snippet.is_consuming() else " (not consuming)"
            print(f"{snippet.id:>5}  {snippet.name:<32} {snippet.type_name():<4}{flag}")
        return 0

    snippet = None
    if args.command in {"show", "delete", "export"}:
        snippet = repository.get(args.key)
        if not snippet.id:
            print(f"Error: Hanna code not found: {args.key}", file=sys.stderr)
            return 1

    if args.command == "show":
        print(f"name: {snippet.name}")
        print(f"type: {snippet.type_name()}{'' if snippet.is_consuming() else ' (not consuming)'}")
        for key, value in snippet.attrs.items():
            print(f"attr: {key}={value}")
        print()
        print(snippet.code)
        return 0

    if args.command == "delete":
        repository.delete(snippet)
        print(f"✅ Deleted {snippet.name}")
        return 0

    if args.command == "export":
        output_text = repository.export_snippet(snippet)
        if args.output:
            with open(args.output, "w", encoding="utf-8") as file_handle:
                file_handle.write(output_text + "\n")
            print(f"✅ Export saved to: {args.output}")
        else:
            print(output_text)
        return 0

    failures = []
    for path in tqdm(args.files, desc="Importing", unit="file", disable=len(args.files) < 2):
        try:
            text = Path(path).read_text(encoding="utf-8")
            imported = repository.import_snippet(text, replace=args.replace)
        except (OSError, InvalidImportError, DuplicateNameError) as exc:
            failures.append(f"{path}: {exc}")
            continue
        tqdm.write(f"✅ Imported {imported.name} (id {imported.id})")

    if failures:
        tqdm.write("\n⚠️  Import errors:")
        for message in failures:
            tqdm.write(f"  • {message}")
        return 1
    return 0


def main() -> None:
    args = _build_parser().parse_args()

    settings = HannaSettings.from_env()
    if args.database_url:
        settings.database_url = args.database_url
    if args.log_level:
        settings.log_level = args.log_level
    configure_logging(settings.log_level)

    try:
        exit_code = _run(args, settings)
    except KeyboardInterrupt:
        print("\n⚠️ Interrupted", file=sys.stderr)
        sys.exit(1)
    except HannaCodeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except Exception:
        logger.exception("Fatal error while running %s", args.command)
        print("\n❌ Fatal error occurred. See log for details.", file=sys.stderr)
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
