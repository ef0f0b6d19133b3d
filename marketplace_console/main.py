from __future__ import annotations

import argparse
import getpass
import sys
from typing import Sequence

from .app.console import ConsoleApp, build_console
from .app.tenant import split_location
from .config import ConfigError, load_config
from .errors import ConsoleError, display_message


def _print_user(app: ConsoleApp) -> None:
    user = app.session.user
    if user is None:
        print("Not signed in.")
        return
    session = app.store.session
    mode = session.mode.value if session else "n/a"
    print(f"User: {user.name} <{user.email}>")
    print(f"Role: {user.role}")
    print(f"Tenant: {app.store.tenant_id or 'default'}")
    print(f"Session: {mode}")


def _print_scope(app: ConsoleApp) -> None:
    scope = app.scope
    print(f"Seller: {scope.current_seller_id or 'platform view'}")
    print(f"Artisan: {scope.current_artisan_id or 'none'}")
    if scope.can_select_seller():
        print("Sellers:")
        for seller in scope.available_sellers:
            marker = "*" if seller.id == scope.current_seller_id else " "
            print(f" {marker} {seller.id}  {seller.name}")
    if scope.available_artisans:
        print("Artisans:")
        for artisan in scope.available_artisans:
            marker = "*" if artisan.id == scope.current_artisan_id else " "
            print(f" {marker} {artisan.id}  {artisan.name}")


def _cmd_login(app: ConsoleApp, args: argparse.Namespace) -> int:
    password = args.password or getpass.getpass("Password: ")
    outcome = app.login(args.email, password, remember_me=args.remember, tenant_id=args.tenant)
    if outcome.requires_two_factor:
        code = args.code or input("Verification code: ").strip()
        outcome = app.verify_two_factor(code)
    print(f"Signed in as {outcome.user.name} ({outcome.user.role}).")
    print(f"Location: {app.navigator.current.path}")
    if not args.remember:
        print("Session is not remembered and ends with this process.")
    return 0


def _cmd_whoami(app: ConsoleApp, args: argparse.Namespace) -> int:
    _print_user(app)
    return 0 if app.session.user else 1


def _cmd_logout(app: ConsoleApp, args: argparse.Namespace) -> int:
    path = app.logout()
    print(f"Signed out. Location: {path}")
    return 0


def _cmd_open(app: ConsoleApp, args: argparse.Namespace) -> int:
    resolution = app.open(args.path, required_roles=args.role or None)
    decision = resolution.decision
    if not decision.allowed:
        print(f"Redirected to {decision.redirect_to} ({decision.reason})")
        return 1
    if resolution.not_found:
        print(f"Not found: {args.path}")
        return 1
    label = resolution.route.label if resolution.route else split_location(args.path)[1]
    print(f"{label} [{resolution.location}]")
    return 0


def _cmd_scope(app: ConsoleApp, args: argparse.Namespace) -> int:
    if app.session.user is None:
        print("Not signed in.")
        return 1
    if args.seller is not None:
        app.scope.set_seller_id(args.seller)
    if args.artisan is not None:
        app.scope.set_artisan_id(args.artisan)
    _print_scope(app)
    return 0


def _cmd_forgot_password(app: ConsoleApp, args: argparse.Namespace) -> int:
    print(app.session.request_password_reset(args.email))
    return 0


def _cmd_activity(app: ConsoleApp, args: argparse.Namespace) -> int:
    entries = app.session.activity_log.entries()
    if not entries:
        print("No login activity recorded.")
        return 0
    for entry in entries[: args.limit]:
        status = "OK" if entry.success else f"FAILED ({entry.failure_reason or 'unknown'})"
        print(f"{entry.timestamp.isoformat()}  {status}  {entry.device_info}")
    return 0


def _cmd_routes(app: ConsoleApp, args: argparse.Namespace) -> int:
    user = app.session.user
    table = app.router.table_for(args.role or (user.role if user else None))
    tenant = app.store.tenant_id
    print(f"Route table: {table.name}")
    for route in table.routes:
        if route.path:
            print(f"  {app.resolver.tenant_path(route.path, tenant)}  {route.label}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="marketplace-console", description="Marketplace operator console")
    parser.add_argument("--env-file", help="Optional .env file to load")
    commands = parser.add_subparsers(dest="command", required=True)

    login = commands.add_parser("login", help="Sign in")
    login.add_argument("email")
    login.add_argument("--password")
    login.add_argument("--remember", action="store_true", help="Keep the session across restarts")
    login.add_argument("--tenant")
    login.add_argument("--code", help="Two-factor code, prompted for when omitted")
    login.set_defaults(handler=_cmd_login)

    commands.add_parser("whoami", help="Show the signed-in operator").set_defaults(handler=_cmd_whoami)
    commands.add_parser("logout", help="Sign out").set_defaults(handler=_cmd_logout)

    open_cmd = commands.add_parser("open", help="Open a console path")
    open_cmd.add_argument("path")
    open_cmd.add_argument("--role", action="append", help="Restrict the path to these roles")
    open_cmd.set_defaults(handler=_cmd_open)

    scope = commands.add_parser("scope", help="Show or change the seller/artisan in view")
    scope.add_argument("--seller", help="Seller id, empty string for the platform view")
    scope.add_argument("--artisan", help="Artisan id, empty string to clear")
    scope.set_defaults(handler=_cmd_scope)

    forgot = commands.add_parser("forgot-password", help="Request a password reset link")
    forgot.add_argument("email")
    forgot.set_defaults(handler=_cmd_forgot_password)

    activity = commands.add_parser("activity", help="Show recent login activity")
    activity.add_argument("--limit", type=int, default=10)
    activity.set_defaults(handler=_cmd_activity)

    routes = commands.add_parser("routes", help="List the route table for a role")
    routes.add_argument("--role")
    routes.set_defaults(handler=_cmd_routes)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.env_file)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    app = build_console(config)
    try:
        app.start()
        return args.handler(app, args)
    except ConsoleError as exc:
        print(display_message(exc), file=sys.stderr)
        return 1
    finally:
        app.shutdown()


if __name__ == "__main__":
    raise SystemExit(main())
