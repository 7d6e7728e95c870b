#!/usr/bin/env python3
from __future__ import annotations

from argparse import ArgumentParser

from sqlalchemy import desc, func, select

from db.models import RUNDOWN_STATUSES, Rundown
from db.session import SessionLocal


def main() -> None:
    parser = ArgumentParser(description="List rundowns by status")
    parser.add_argument("--status", default="submitted", choices=list(RUNDOWN_STATUSES))
    parser.add_argument("--limit", type=int, default=20)
    parser.add_argument("--summary", action="store_true")
    args = parser.parse_args()

    session = SessionLocal()
    try:
        if args.summary:
            stmt = select(Rundown.status, func.count()).group_by(Rundown.status)
            for status, count in session.execute(stmt).all():
                print(f"[summary] {status}: {count}")
            return
        stmt = (
            select(Rundown)
            .where(Rundown.status == args.status)
            .order_by(desc(Rundown.submitted_at), desc(Rundown.updated_at))
            .limit(args.limit)
        )
        for rundown in session.execute(stmt).scalars().all():
            print(
                f"[rundown] id={rundown.id} status={rundown.status} owner={rundown.created_by} "
                f"total={rundown.total_duration}s submitted_at={rundown.submitted_at} "
                f"title={rundown.title!r}"
            )
    finally:
        session.close()


if __name__ == "__main__":
    main()
