import argparse
import json
from pathlib import Path
from typing import Any

from . import __version__
from .classifier import classify
from .config import Settings, build_stores, load_env
from .errors import BusinessRuleError, ContactLinkError, PartialFailure
from .logger import get_logger, reset_logger
from .schema import validate_schema
from .service import ContactLinkService


def _read_json(path_str: str) -> Any:
    path = Path(path_str)
    if not path.exists():
        raise SystemExit(f"Input file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise SystemExit(f"Invalid JSON in {path}: {e}")


def _form_fields(form: Any) -> Any:
    # accepts a bare field list or a form document with "fields"
    if isinstance(form, dict):
        return form.get("fields", [])
    return form


def _submission_values(submission: Any) -> Any:
    if isinstance(submission, dict) and isinstance(submission.get("data"), dict):
        return submission["data"]
    return submission


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str, ensure_ascii=False))


def _service(settings: Settings) -> ContactLinkService:
    reset_logger()
    logger = get_logger(level=settings.log_level, log_dir=settings.log_dir)
    return ContactLinkService(
        build_stores(settings),
        max_retries=settings.repoint_retries,
        retry_delay=settings.retry_delay,
        logger=logger,
    )


def cmd_classify(args: argparse.Namespace, settings: Settings) -> None:
    fields = _form_fields(_read_json(args.form))
    values = _submission_values(_read_json(args.input))
    _print_json(classify(fields, values).as_dict())


def cmd_validate_schema(args: argparse.Namespace, settings: Settings) -> None:
    errors = validate_schema(_form_fields(_read_json(args.form)))
    if errors:
        print("Invalid:")
        for e in errors:
            print(f" - {e}")
        raise SystemExit(2)
    print("Valid")


def cmd_ingest(args: argparse.Namespace, settings: Settings) -> None:
    form = _read_json(args.form)
    submission = _read_json(args.input)
    form_id = args.form_id or (form.get("id") if isinstance(form, dict) else None)
    service = _service(settings)
    stored = service.record_submission(
        args.tenant,
        form_id,
        _form_fields(form),
        _submission_values(submission),
        strict=args.strict,
    )
    print(f"Submission: {stored.id}")
    print(f"Customer: {stored.customer_id or '(no identity)'}")


def cmd_list(args: argparse.Namespace, settings: Settings) -> None:
    customers = _service(settings).list_customers(args.tenant)
    if not customers:
        print("No customers for tenant.")
        return
    print(f"Found {len(customers)} customers for {args.tenant}:\n")
    for customer in customers:
        print(f"ID: {customer.id}")
        print(f"  Name: {customer.name}")
        print(f"  Email: {customer.email}")
        print(f"  Phone: {customer.phone}")
        print(f"  Submissions: {customer.submission_count}")
        print()


def cmd_merge(args: argparse.Namespace, settings: Settings) -> None:
    service = _service(settings)
    try:
        result = service.merge_customers(args.tenant, args.source, args.target)
    except PartialFailure as e:
        print(f"Merge incomplete: {e.message}")
        for record_id in e.failed_ids:
            print(f" - {record_id}")
        print("Run the same merge again to resume.")
        raise SystemExit(4)
    print(f"Merged {args.source} into {result.target.id}.")
    print(f"Updated {result.repointed_submissions} submissions and {result.repointed_invoices} invoices.")
    if args.json:
        _print_json(result.target.to_dict())


def main(argv=None):
    load_env()
    parser = argparse.ArgumentParser(prog="contactlink", description="Customer identity resolution for form submissions")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")
    cls = subparsers.add_parser("classify", help="Print the contact extracted from one submission")
    cls.add_argument("--form", required=True, help="Path to form JSON (field list or {fields: [...]})")
    cls.add_argument("--input", required=True, help="Path to submission JSON (values or {data: {...}})")
    cls.set_defaults(func=cmd_classify)

    val = subparsers.add_parser("validate-schema", help="Validate a form schema JSON")
    val.add_argument("--form", required=True, help="Path to form JSON")
    val.set_defaults(func=cmd_validate_schema)

    ing = subparsers.add_parser("ingest", help="Store a submission and link it to a customer")
    ing.add_argument("--tenant", required=True, help="Tenant id")
    ing.add_argument("--form", required=True, help="Path to form JSON")
    ing.add_argument("--input", required=True, help="Path to submission JSON")
    ing.add_argument("--form-id", help="Form id (default: form JSON 'id')")
    ing.add_argument("--strict", action="store_true", help="Reject malformed form schemas instead of skipping bad fields")
    ing.set_defaults(func=cmd_ingest)

    lst = subparsers.add_parser("list", help="List a tenant's customers")
    lst.add_argument("--tenant", required=True, help="Tenant id")
    lst.set_defaults(func=cmd_list)

    mrg = subparsers.add_parser("merge", help="Merge a duplicate customer into another")
    mrg.add_argument("--tenant", required=True, help="Tenant id")
    mrg.add_argument("--source", required=True, help="Customer id to merge away (deleted)")
    mrg.add_argument("--target", required=True, help="Customer id to keep")
    mrg.add_argument("--json", action="store_true", help="Print the merged customer as JSON")
    mrg.set_defaults(func=cmd_merge)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if not hasattr(args, "func"):
        parser.print_help()
        return

    try:
        settings = Settings.from_env()
        args.func(args, settings)
    except BusinessRuleError as e:
        raise SystemExit(f"{e.code}: {e.message}")
    except ContactLinkError as e:
        raise SystemExit(f"{e.code}: {e.message} (safe to retry)")


if __name__ == "__main__":
    main()
