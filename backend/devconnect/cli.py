#!/usr/bin/env python3
"""CLI for devconnect. Usage: devconnect <command> [args]"""

import json
import logging
import sys

from devconnect import config, tool


def _parse_flags(args: list[str], flags: dict[str, type]) -> tuple[dict, list[str]]:
    """Parse --flag=value args. Returns (parsed_flags, remaining_args)."""
    parsed = {}
    remaining = []
    for arg in args:
        if arg.startswith("--") and "=" in arg:
            key, val = arg.split("=", 1)
            key = key[2:]  # strip --
            if key in flags:
                parsed[key] = flags[key](val)
            else:
                remaining.append(arg)
        elif arg.startswith("--"):
            key = arg[2:]
            if key in flags and flags[key] is bool:
                parsed[key] = True
            else:
                remaining.append(arg)
        else:
            remaining.append(arg)
    return parsed, remaining


HELP = """Usage: devconnect <command> [args] [--full]

Applications:
  apps [--role] [--job] [--status] [--page]
                          List applications (role: applicant|recruiter)
  app <id>                Show one application
  apply <job_id> [--cover=text] [--resume=url]
                          Apply to a job
  review <id>             Recruiter: mark reviewed
  shortlist <id>          Recruiter: shortlist
  accept <id>             Recruiter: accept
  reject <id>             Recruiter: reject
  withdraw <id>           Applicant: withdraw (pending/reviewed only)
  actions <id> [--role]   Allowed next statuses

Social:
  follow <user_id>        Follow a user
  unfollow <user_id>      Unfollow a user
  pin <dev_id> <repo_id>  Pin a repository on a profile
  unpin <dev_id> <repo_id>
  followers <username> [--page]
  following <username> [--page]

Jobs:
  jobs [query] [--page] [--type=workType]

Environment: DEVCONNECT_API_URL, DEVCONNECT_TOKEN, DEVCONNECT_LOG_LEVEL
"""

RECRUITER_COMMANDS = {
    "review": "REVIEWED",
    "shortlist": "SHORTLISTED",
    "accept": "ACCEPTED",
    "reject": "REJECTED",
}


def _print(result) -> None:
    if isinstance(result, dict):
        print(json.dumps(result, indent=2, default=str))
    else:
        print(result)


def _usage(line: str) -> None:
    print(f"Usage: devconnect {line}")


def main():
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )
    args = sys.argv[1:]
    if not args or args[0] in ("-h", "--help", "help"):
        print(HELP.strip())
        return

    cmd = args[0]
    flags, rest = _parse_flags(args[1:], {
        "full": bool,
        "role": str,
        "job": str,
        "status": str,
        "page": int,
        "cover": str,
        "resume": str,
        "type": str,
    })
    full = flags.get("full", False)

    if cmd == "apps":
        role = flags.get("role", "applicant")
        if role not in ("applicant", "recruiter"):
            _usage("apps --role=applicant|recruiter")
            return
        _print(tool.get_applications(
            role=role,
            job_id=flags.get("job"),
            status=flags.get("status"),
            page=flags.get("page", 1),
            full=full,
        ))

    elif cmd == "app":
        if not rest:
            _usage("app <id>")
            return
        _print(tool.get_application(rest[0], full=full))

    elif cmd == "apply":
        if not rest:
            _usage("apply <job_id> [--cover=text] [--resume=url]")
            return
        _print(tool.apply_to_job(
            rest[0], cover_letter=flags.get("cover"), resume_url=flags.get("resume"), full=full
        ))

    elif cmd in RECRUITER_COMMANDS:
        if not rest:
            _usage(f"{cmd} <id> [...]")
            return
        for application_id in rest:
            _print(tool.transition_application(
                application_id, RECRUITER_COMMANDS[cmd], role="recruiter", full=full
            ))

    elif cmd == "withdraw":
        if not rest:
            _usage("withdraw <id>")
            return
        _print(tool.withdraw_application(rest[0], full=full))

    elif cmd == "actions":
        if not rest:
            _usage("actions <id> [--role=recruiter|applicant]")
            return
        role = flags.get("role", "recruiter")
        if role not in ("applicant", "recruiter"):
            _usage("actions <id> --role=applicant|recruiter")
            return
        _print(tool.allowed_actions(rest[0], role=role, full=full))

    elif cmd in ("follow", "unfollow"):
        if not rest:
            _usage(f"{cmd} <user_id>")
            return
        func = tool.follow if cmd == "follow" else tool.unfollow
        _print(func(rest[0], full=full))

    elif cmd in ("pin", "unpin"):
        if len(rest) < 2:
            _usage(f"{cmd} <developer_id> <repo_id>")
            return
        func = tool.pin_repo if cmd == "pin" else tool.unpin_repo
        _print(func(rest[0], rest[1], full=full))

    elif cmd in ("followers", "following"):
        if not rest:
            _usage(f"{cmd} <username>")
            return
        func = tool.get_followers if cmd == "followers" else tool.get_following
        _print(func(rest[0], page=flags.get("page", 1), full=full))

    elif cmd == "jobs":
        extra = {"workType": flags["type"]} if "type" in flags else {}
        _print(tool.get_jobs(
            query=" ".join(rest) or None, page=flags.get("page", 1), full=full, **extra
        ))

    else:
        print(f"Unknown command: {cmd}\n")
        print(HELP.strip())


if __name__ == "__main__":
    main()
