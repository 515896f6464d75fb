"""``todo`` command-line client."""

import argparse
import getpass
import logging
import sys

import httpx

from todo_api.client.api import ApiClient, ApiClientError, TokenStore
from todo_api.client.session import AuthSession, TaskService
from todo_api.config import ClientSettings

logger = logging.getLogger(__name__)

STATUS_MARKS = {"todo": "[ ]", "in-progress": "[~]", "done": "[x]"}


def _format_task(task: dict) -> str:
    line = f"{STATUS_MARKS.get(task['status'], '[?]')} {task['id']}  {task['title']}"
    if task.get("dueDate"):
        line += f"  (due {task['dueDate']})"
    return line


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="todo", description="To-do list client")
    parser.add_argument("--api-url", help="API base URL (default: $TODO_API_URL)")
    sub = parser.add_subparsers(dest="command", required=True)

    for name in ("register", "login"):
        p = sub.add_parser(name)
        p.add_argument("email")
        p.add_argument("--password", help="prompted when omitted")
        if name == "register":
            p.add_argument("--name")

    sub.add_parser("logout")
    sub.add_parser("me")

    p = sub.add_parser("list")
    p.add_argument("--page", type=int)
    p.add_argument("--limit", type=int)
    p.add_argument("--status", choices=sorted(STATUS_MARKS))
    p.add_argument("--search")

    p = sub.add_parser("add")
    p.add_argument("title")
    p.add_argument("--description")
    p.add_argument("--status", choices=sorted(STATUS_MARKS))
    p.add_argument("--due", help="ISO-8601 due date")

    p = sub.add_parser("show")
    p.add_argument("id")

    p = sub.add_parser("done")
    p.add_argument("id")

    p = sub.add_parser("edit")
    p.add_argument("id")
    p.add_argument("--title")
    p.add_argument("--description")
    p.add_argument("--status", choices=sorted(STATUS_MARKS))
    due = p.add_mutually_exclusive_group()
    due.add_argument("--due", help="ISO-8601 due date")
    due.add_argument("--clear-due", action="store_true")

    p = sub.add_parser("rm")
    p.add_argument("id")
    return parser


def run(args, api: ApiClient, out=sys.stdout) -> int:
    session = AuthSession(api)
    tasks = TaskService(api)
    cmd = args.command

    if cmd in ("register", "login"):
        password = args.password or getpass.getpass("Password: ")
        if cmd == "register":
            user = session.register(args.email, password, args.name)
        else:
            user = session.login(args.email, password)
        print(f"Signed in as {user['email']}", file=out)
    elif cmd == "logout":
        session.logout()
        print("Signed out", file=out)
    elif cmd == "me":
        user = session.restore()
        if user is None:
            print("Not signed in", file=out)
            return 1
        print(f"{user['email']} ({user.get('name') or 'no name'})", file=out)
    elif cmd == "list":
        res = tasks.list(page=args.page, limit=args.limit, status=args.status, search=args.search)
        for task in res["items"]:
            print(_format_task(task), file=out)
        print(f"page {res['page']}/{max(res['pages'], 1)}, {res['total']} task(s)", file=out)
    elif cmd == "add":
        task = tasks.create(args.title, args.description, args.status, args.due)
        print(_format_task(task), file=out)
    elif cmd == "show":
        task = tasks.get(args.id)
        print(_format_task(task), file=out)
        if task.get("description"):
            print(task["description"], file=out)
    elif cmd == "done":
        print(_format_task(tasks.mark_done(args.id)), file=out)
    elif cmd == "edit":
        fields = {k: v for k, v in (("title", args.title), ("description", args.description),
                                    ("status", args.status)) if v is not None}
        if args.clear_due:
            fields["due_date"] = None
        elif args.due:
            fields["due_date"] = args.due
        print(_format_task(tasks.update(args.id, **fields)), file=out)
    elif cmd == "rm":
        tasks.delete(args.id)
        print("Deleted", file=out)
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = ClientSettings.from_env()
    api = ApiClient(args.api_url or settings.api_url, TokenStore(settings.token_file))
    try:
        return run(args, api)
    except ApiClientError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 1
    except httpx.HTTPError as e:
        logger.debug("request failed", exc_info=True)
        print(f"error: cannot reach API: {e}", file=sys.stderr)
        return 1
    finally:
        api.close()


if __name__ == "__main__":
    sys.exit(main())
