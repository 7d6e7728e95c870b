#!/usr/bin/env python3
from __future__ import annotations

from argparse import ArgumentParser
from uuid import UUID

from db.models import Rundown
from db.session import SessionLocal
from rundowns.aggregate import serialize_rundown


def _format_seconds(seconds: int) -> str:
    minutes, rest = divmod(int(seconds or 0), 60)
    return f"{minutes}:{rest:02d}"


def main() -> None:
    parser = ArgumentParser(description="Print a rundown timeline")
    parser.add_argument("--rundown-id", required=True)
    parser.add_argument("--stories", action="store_true", help="Include linked stories")
    args = parser.parse_args()

    session = SessionLocal()
    try:
        rundown = session.get(Rundown, UUID(args.rundown_id))
        if rundown is None:
            raise SystemExit("Rundown not found")

        payload = serialize_rundown(rundown)
        print(
            f"[rundown] id={payload['id']} title={payload['title']!r} status={payload['status']} "
            f"total={_format_seconds(payload['total_duration'])}"
        )
        elapsed = 0
        for segment in payload["segments"]:
            pin = " pinned" if segment["is_pinned"] else ""
            print(
                f"[segment] {segment['order_index']:>2} at={_format_seconds(elapsed)} "
                f"type={segment['type']} duration={_format_seconds(segment['duration'])}{pin} "
                f"title={segment['title']!r}"
            )
            elapsed += segment["duration"]
            if args.stories:
                for link in segment["stories"]:
                    print(f"[story]   story_id={link['source_story_id']} title={link['title']!r}")
        for member in payload["talent"]:
            print(f"[talent] role={member['role']} tag={member['tag']['tag']}")
        if args.stories:
            for link in payload["unassigned_stories"]:
                print(f"[story] unassigned story_id={link['source_story_id']} title={link['title']!r}")
        for token in payload["dangling_tags"]:
            print(f"[warn] dangling_tag={token}")
    finally:
        session.close()


if __name__ == "__main__":
    main()
