#!/usr/bin/env python3
from __future__ import annotations

from argparse import ArgumentParser
from uuid import UUID

from db.session import SessionLocal
from rundowns.actors import Actor
from rundowns.errors import RundownError
from rundowns.workflow import approve_rundown, reject_rundown


def main() -> None:
    parser = ArgumentParser(description="Approve or reject a submitted rundown")
    parser.add_argument("--rundown-id", required=True)
    parser.add_argument("--decision", required=True, choices=["approve", "reject"])
    parser.add_argument("--reviewer-id", required=True)
    parser.add_argument("--role", default="teacher", choices=["teacher", "admin"])
    parser.add_argument("--notes", default="")
    args = parser.parse_args()

    actor = Actor.from_role(UUID(args.reviewer_id), args.role)
    rundown_id = UUID(args.rundown_id)

    session = SessionLocal()
    try:
        try:
            if args.decision == "approve":
                rundown = approve_rundown(
                    session, rundown_id=rundown_id, actor=actor, notes=args.notes or None
                )
            else:
                rundown = reject_rundown(
                    session, rundown_id=rundown_id, actor=actor, notes=args.notes
                )
        except RundownError as exc:
            session.rollback()
            raise SystemExit(f"[review] error={exc.kind} message={exc.message}") from exc
        session.commit()
        print(f"[review] rundown_id={rundown.id} status={rundown.status} reviewer={actor.id}")
    finally:
        session.close()


if __name__ == "__main__":
    main()
