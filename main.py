#!/usr/bin/env python3
"""
MedMachines -- record medical machine category, type and purpose.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8000 --reload
  python main.py register admin@example.com
  python main.py list
  python main.py list --type "X-Ray Machine"
  python main.py list --json

Environment variables (see core/config.py for the full list):
  SECRET_KEY    Required unless DEBUG=true. At least 32 characters.
  DATABASE_URL  SQLAlchemy URL. Defaults to medmachines.db next to this file.
"""

import argparse
import getpass
import json
import sys
from typing import Optional

from core.config import get_settings
from core.errors import MachineRegistryError


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "asgi:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


def _register(args: argparse.Namespace) -> int:
    from auth.service import AuthService
    from auth.store import UserStore

    password = getpass.getpass("  Password: ")
    if password != getpass.getpass("  Confirm password: "):
        print("  [!] Passwords do not match.")
        return 1

    store = UserStore()
    try:
        message = AuthService(store).register(args.email.strip(), password)
    finally:
        store.close()
    print(f"  {message}.")
    return 0


def _list(args: argparse.Namespace) -> int:
    from machines.service import MachineService
    from machines.store import MachineStore

    store = MachineStore()
    try:
        service = MachineService(store)
        records = service.list_by_type(args.type) if args.type else service.list_all()
    finally:
        store.close()

    if args.json:
        rows = [
            {"id": r.id, "machineName": r.machine_name, "machineType": r.machine_type, "purpose": r.purpose}
            for r in records
        ]
        print(json.dumps(rows, indent=2))
        return 0

    if not records:
        print("  No machines recorded.")
        return 0
    for r in records:
        print(f"  [{r.id}] {r.machine_name} / {r.machine_type}")
        print(f"        {r.purpose}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="medmachines",
        description="Record medical machine category, type and purpose.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --port 5000
  python main.py register admin@example.com
  python main.py list --type "X-Ray Machine" --json
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the API and web client with uvicorn")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST setting)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: PORT setting, 5000)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development)")
    serve.set_defaults(func=_serve)

    register = sub.add_parser("register", help="Register a user; prompts for the password")
    register.add_argument("email", help="Email address used to log in")
    register.set_defaults(func=_register)

    list_cmd = sub.add_parser("list", help="Print complete machine records")
    list_cmd.add_argument("--type", metavar="MACHINE_TYPE", help="Only this machine type (includes incomplete records)")
    list_cmd.add_argument("--json", action="store_true", help="Output JSON in the API's shape")
    list_cmd.set_defaults(func=_list)

    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except MachineRegistryError as exc:
        print(f"  [!] {exc.message}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
