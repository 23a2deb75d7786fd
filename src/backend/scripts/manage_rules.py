from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any


def _ensure_backend_on_path() -> None:
    backend_dir = Path(__file__).resolve().parents[1]
    if str(backend_dir) not in sys.path:
        sys.path.insert(0, str(backend_dir))


def _dump_json(payload: Any) -> str:
    return json.dumps(payload, indent=2, sort_keys=True)


def _dump_yaml(payload: Any) -> str:
    try:
        import yaml  # type: ignore
    except ModuleNotFoundError as exc:
        raise SystemExit("PyYAML is required for YAML output (pip install pyyaml).") from exc

    return yaml.safe_dump(payload, sort_keys=True)


def _emit(payload: Any, fmt: str = "json") -> None:
    print(_dump_yaml(payload) if fmt == "yaml" else _dump_json(payload))


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Parse audit instructions into rules and manage rule versions.")
    parser.add_argument(
        "--store-path",
        default=None,
        help="Path to the JSON rule store file (defaults to RULE_STORE_PATH or .audit_rules.json).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Show whether AI parsing is available.")

    parse_cmd = sub.add_parser("parse", help="Parse an instruction into a rule.")
    parse_cmd.add_argument("instruction")
    parse_cmd.add_argument("--save", action="store_true", help="Persist the parsed rule on success.")
    parse_cmd.add_argument("--created-by", default="cli")

    list_cmd = sub.add_parser("list", help="List saved rules.")
    list_cmd.add_argument("--active", action="store_true", help="Only active rules.")
    list_cmd.add_argument("--format", choices=("json", "yaml"), default="json")

    versions_cmd = sub.add_parser("versions", help="List versions of a rule type, latest first.")
    versions_cmd.add_argument("rule_type")

    rollback_cmd = sub.add_parser("rollback", help="Re-activate a prior version of a rule type.")
    rollback_cmd.add_argument("rule_type")
    rollback_cmd.add_argument("version", type=int)

    for name, help_text in (("deactivate", "Deactivate a rule by id."), ("delete", "Delete a rule by id.")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("rule_id")

    export_cmd = sub.add_parser("export", help="Export all rules as JSON.")
    export_cmd.add_argument("--out", default=None, help="Write to this file instead of stdout.")

    import_cmd = sub.add_parser("import", help="Replace all rules with the contents of a JSON export.")
    import_cmd.add_argument("path")

    sub.add_parser("stats", help="Show rule counts.")
    sub.add_parser("clear", help="Remove all rules and version history.")
    return parser


def main(argv: list[str] | None = None) -> int:
    _ensure_backend_on_path()

    from common.audit_rules.storage import JsonFileKeyValueStore
    from common.audit_rules.store import RuleStore, RuleStoreError
    from connectors.llm import build_instruction_parser

    args = build_arg_parser().parse_args(argv)
    store = RuleStore(JsonFileKeyValueStore(args.store_path))
    try:
        return _dispatch(args, store, build_instruction_parser)
    except RuleStoreError as exc:
        print(f"Rule store error: {exc}", file=sys.stderr)
        return 1


def _dispatch(args: argparse.Namespace, store: Any, build_instruction_parser: Any) -> int:
    if args.command == "status":
        _emit(build_instruction_parser().get_status().model_dump(by_alias=True))
    elif args.command == "parse":
        result = build_instruction_parser().parse_instruction(args.instruction)
        _emit(result.to_payload())
        if not result.success:
            return 1
        if args.save:
            saved = store.save(result.rule, args.instruction, args.created_by)
            print(f"Saved rule {saved.id} ({saved.rule_type.value} v{saved.version})")
    elif args.command == "list":
        rules = store.get_active() if args.active else store.get_all()
        _emit([r.model_dump(mode="json") for r in rules], args.format)
    elif args.command == "versions":
        _emit([r.model_dump(mode="json") for r in store.get_versions(args.rule_type)])
    elif args.command == "rollback":
        rule = store.rollback(args.rule_type, args.version)
        if rule is None:
            print(f"No {args.rule_type} rule at version {args.version}", file=sys.stderr)
            return 1
        _emit(rule.model_dump(mode="json"))
    elif args.command in ("deactivate", "delete"):
        op = store.deactivate if args.command == "deactivate" else store.delete
        if not op(args.rule_id):
            print(f"Rule not found: {args.rule_id}", file=sys.stderr)
            return 1
        print(f"{args.command.capitalize()}d rule {args.rule_id}")
    elif args.command == "export":
        exported = store.export_all()
        if args.out:
            Path(args.out).write_text(exported, encoding="utf-8")
        else:
            print(exported)
    elif args.command == "import":
        try:
            raw = Path(args.path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            print(f"Cannot read {args.path}: {exc}", file=sys.stderr)
            return 1
        if not store.import_all(raw):
            print("Import rejected; existing rules left unchanged.", file=sys.stderr)
            return 1
        print(f"Imported {len(store.get_all())} rules")
    elif args.command == "stats":
        _emit(store.stats().model_dump(by_alias=True))
    elif args.command == "clear":
        store.clear()
        print("Cleared all rules")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
