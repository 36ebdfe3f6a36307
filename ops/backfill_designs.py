"""
Operator CLI for the design backfill and link maintenance admin routes.

  python ops/backfill_designs.py --mode stats
  python ops/backfill_designs.py --mode apply --limit 200 --batches 10 --yes
  python ops/backfill_designs.py --mode cleanup --yes
  python ops/backfill_designs.py --mode propagate --design-id dsg_... --yes
"""
from __future__ import annotations

import argparse
import json
import os
import sys
import urllib.error
import urllib.request
from typing import Any


BASE_URL = os.getenv("DESIGNHUB_BASE_URL", "http://localhost:8000")
ACTOR_ID = os.getenv("DESIGNHUB_ACTOR_ID", "ops-backfill")
TIMEOUT_SECONDS = 300


class AdminCallFailed(RuntimeError):
    pass


def admin_call(args: argparse.Namespace, method: str, path: str) -> dict[str, Any]:
    url = args.base_url.rstrip("/") + path
    req = urllib.request.Request(
        url,
        data=b"{}" if method == "POST" else None,
        method=method,
        headers={
            "Content-Type": "application/json",
            "X-Moderator-Key": args.moderator_key,
            "X-Actor-Id": args.actor_id,
        },
    )
    try:
        with urllib.request.urlopen(req, timeout=TIMEOUT_SECONDS) as resp:
            payload = resp.read().decode("utf-8")
    except urllib.error.HTTPError as e:
        detail = e.read().decode("utf-8", errors="replace")
        raise AdminCallFailed(f"{method} {url} -> HTTP {e.code}: {detail or e.reason}") from e
    except urllib.error.URLError as e:
        raise AdminCallFailed(f"{method} {url} -> {e.reason}") from e
    return json.loads(payload) if payload else {}


def dump(obj: dict[str, Any]) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def run_stats(args: argparse.Namespace) -> int:
    dump(admin_call(args, "GET", "/v1/admin/links/stats"))
    return 0


def run_cleanup(args: argparse.Namespace) -> int:
    dump(admin_call(args, "POST", "/v1/admin/links/cleanup"))
    return 0


def run_propagate(args: argparse.Namespace) -> int:
    if not args.design_id:
        print("--design-id is required for propagate", file=sys.stderr)
        return 2
    report = admin_call(args, "POST", f"/v1/moderation/designs/{args.design_id}/propagate")
    dump(report)
    return 1 if report.get("failures") else 0


def run_apply(args: argparse.Namespace) -> int:
    failed = 0
    for batch in range(1, args.batches + 1):
        report = admin_call(args, "POST", f"/v1/admin/designs/backfill?limit={args.limit}")
        dump({"batch": batch, **report})
        failed += len(report.get("errors") or [])
        # listings that keep failing stay in the scan; stop once a batch finds nothing new
        if report.get("linked", 0) == 0 and report.get("relinked", 0) == 0:
            break
    return 1 if failed else 0


MODES = {
    "stats": run_stats,
    "apply": run_apply,
    "cleanup": run_cleanup,
    "propagate": run_propagate,
}


def main() -> int:
    p = argparse.ArgumentParser(description="Backfill designs for legacy listings and maintain design/listing links.")
    p.add_argument("--base-url", default=BASE_URL)
    p.add_argument("--moderator-key", default=os.getenv("MODERATOR_KEY", ""))
    p.add_argument("--actor-id", default=ACTOR_ID)
    p.add_argument("--mode", choices=sorted(MODES), default="stats")
    p.add_argument("--limit", type=int, default=500, help="listings per batch (apply)")
    p.add_argument("--batches", type=int, default=1, help="max batches (apply)")
    p.add_argument("--design-id", help="design to re-propagate (propagate)")
    p.add_argument("--yes", action="store_true", help="confirm a writing mode")
    args = p.parse_args()

    if not args.moderator_key:
        print("Missing MODERATOR_KEY (env) or --moderator-key", file=sys.stderr)
        return 2
    if args.mode != "stats" and not args.yes:
        print(f"Refusing to run {args.mode} without --yes", file=sys.stderr)
        return 2

    try:
        return MODES[args.mode](args)
    except AdminCallFailed as e:
        print(str(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
