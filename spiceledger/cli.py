from __future__ import annotations

import argparse
import json
from dataclasses import asdict

from spiceledger.api.utils import parse_day
from spiceledger.core.config import get_settings
from spiceledger.core.logging import configure_logging
from spiceledger.domain.errors import UserNotFoundError
from spiceledger.persistence import pg
from spiceledger.persistence.migrations import MigrationRunner
from spiceledger.services.auth import AuthService
from spiceledger.services.ledger import LedgerService, today_utc
from spiceledger.users.store import UserStore


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SpiceLedger CLI")
    top = parser.add_subparsers(dest="command", required=True)

    migrate = top.add_parser("migrate", help="Schema migrations")
    migrate.add_argument("direction", choices=["up", "down", "status"])

    top.add_parser("seed-admin", help="Create the configured admin account if missing")

    inventory = top.add_parser("inventory", help="Print a user's inventory valuation as JSON")
    inventory.add_argument("--email", required=True)
    inventory.add_argument("--date", default=None, help="YYYY-MM-DD (default: today, UTC)")

    serve = top.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    return parser


def _run_migrate(direction: str) -> int:
    runner = MigrationRunner(pg.engine)
    if direction == "up":
        result = runner.up()
        print(json.dumps(asdict(result), indent=2))
    elif direction == "down":
        runner.down()
        print(json.dumps({"dropped": True}))
    else:
        print(json.dumps(runner.status(), indent=2))
    return 0


def _run_seed_admin() -> int:
    pg.init_db()
    with pg.session_scope() as session:
        created = AuthService(session).seed_admin()
    print(json.dumps({"email": get_settings().admin_email, "created": created}))
    return 0


def _run_inventory(args: argparse.Namespace) -> int:
    day = parse_day(args.date) if args.date else today_utc()
    try:
        with pg.session_scope() as session:
            user = UserStore(session).find_by_email(args.email.strip().lower())
            if user is None:
                raise UserNotFoundError(f"user not found: {args.email}")
            inventory = LedgerService.from_session(session).inventory_on_date(user.id, day)
    except UserNotFoundError as exc:
        print(json.dumps({"error": exc.code, "detail": str(exc)}))
        return 1
    print(json.dumps(asdict(inventory), default=str, ensure_ascii=False, indent=2))
    return 0


def _run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "spiceledger.main:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        log_level=settings.log_level.lower(),
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging()

    if args.command == "migrate":
        return _run_migrate(args.direction)
    if args.command == "seed-admin":
        return _run_seed_admin()
    if args.command == "inventory":
        return _run_inventory(args)
    if args.command == "serve":
        return _run_serve(args)

    parser.error("unsupported command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
