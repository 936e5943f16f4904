"""
Command-line admin front end for the Roster API. Run from project root:
  python -m app.scripts.admin [--url URL] [--token TOKEN] COMMAND ...

Commands:
  roles                                    list available roles
  list                                     users grouped by role
  show ID                                  one user
  create --name N --email E --role ID ...  create a user (repeat --role)
  update ID [--name N] [--email E] [--role ID ...]
  delete ID
"""
import argparse
import os
import sys
from collections.abc import Sequence
from typing import Any, TextIO

from app.client import AdminApiError, UserAdminClient

DEFAULT_URL = "http://localhost:8000/api/v1"


def _table(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> list[str]:
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(str(cell)))
    fmt = "  ".join(f"{{:<{w}}}" for w in widths)
    lines = [fmt.format(*headers), fmt.format(*("-" * w for w in widths))]
    lines.extend(fmt.format(*(str(c) for c in row)) for row in rows)
    return [line.rstrip() for line in lines]


def render_groups(groups: list[dict[str, Any]]) -> str:
    """Render role groups as one small table per role ("No users" when empty)."""
    out: list[str] = []
    for group in groups:
        users = group.get("users") or []
        out.append(f"{group['role']} ({len(users)})")
        if not users:
            out.append("  No users")
        else:
            rows = [(u["id"], u["full_name"], u["email"], u["created_at"]) for u in users]
            out.extend("  " + line for line in _table(("ID", "Name", "Email", "Created"), rows))
        out.append("")
    return "\n".join(out).rstrip() + "\n"


def render_user(user: dict[str, Any]) -> str:
    lines = [
        f"id:         {user['id']}",
        f"full_name:  {user['full_name']}",
        f"email:      {user['email']}",
        f"roles:      {', '.join(user.get('roles') or [])}",
        f"created_at: {user['created_at']}",
    ]
    if "updated_at" in user:
        lines.append(f"updated_at: {user['updated_at']}")
    return "\n".join(lines) + "\n"


def render_error(err: AdminApiError) -> str:
    lines = [f"Error: {err.message}"]
    for field, messages in err.errors.items():
        for message in messages:
            lines.append(f"  {field}: {message}")
    if err.error:
        lines.append(f"  ({err.error})")
    return "\n".join(lines) + "\n"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage Roster users from the command line.")
    parser.add_argument(
        "--url",
        default=os.environ.get("ROSTER_API_URL", DEFAULT_URL),
        help=f"API v1 base URL (default: $ROSTER_API_URL or {DEFAULT_URL})",
    )
    parser.add_argument(
        "--token",
        default=os.environ.get("ROSTER_API_TOKEN"),
        help="Bearer token (default: $ROSTER_API_TOKEN)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("roles", help="List roles")
    sub.add_parser("list", help="List users grouped by role")

    show = sub.add_parser("show", help="Show one user")
    show.add_argument("user_id", type=int)

    create = sub.add_parser("create", help="Create a user")
    create.add_argument("--name", required=True, dest="full_name")
    create.add_argument("--email", required=True)
    create.add_argument("--role", type=int, action="append", dest="roles", default=[])

    update = sub.add_parser("update", help="Update a user (only the given fields)")
    update.add_argument("user_id", type=int)
    update.add_argument("--name", dest="full_name")
    update.add_argument("--email")
    update.add_argument("--role", type=int, action="append", dest="roles")

    delete = sub.add_parser("delete", help="Delete a user")
    delete.add_argument("user_id", type=int)
    return parser


def run(args: argparse.Namespace, client: UserAdminClient, out: TextIO) -> None:
    if args.command == "roles":
        rows = [(r["id"], r["name"], r.get("description") or "") for r in client.list_roles()]
        out.write("\n".join(_table(("ID", "Name", "Description"), rows)) + "\n")
    elif args.command == "list":
        out.write(render_groups(client.list_users_by_role()))
    elif args.command == "show":
        out.write(render_user(client.get_user(args.user_id)))
    elif args.command == "create":
        out.write(render_user(client.create_user(args.full_name, args.email, args.roles)))
    elif args.command == "update":
        user = client.update_user(
            args.user_id,
            full_name=args.full_name,
            email=args.email,
            role_ids=args.roles,
        )
        out.write(render_user(user))
    elif args.command == "delete":
        out.write(client.delete_user(args.user_id) + "\n")


def main(
    argv: list[str] | None = None,
    client: UserAdminClient | None = None,
    out: TextIO = sys.stdout,
    err: TextIO = sys.stderr,
) -> int:
    args = build_parser().parse_args(argv)
    client = client or UserAdminClient(args.url, token=args.token)
    try:
        run(args, client, out)
        return 0
    except AdminApiError as e:
        err.write(render_error(e))
        return 1
    finally:
        client.close()


if __name__ == "__main__":
    sys.exit(main())
