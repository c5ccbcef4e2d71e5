"""
Seed customers, an agent and their bookings/campaigns for load runs.

Usage examples:

  python load/seed_inbox.py --customers 50 --agents 2 --outfile load/tokens.csv

Then in Locust runs:
  export INBOX_BEARERS="$(paste -sd, load/tokens.csv)"

Writes to the database configured by SQLALCHEMY_DATABASE_URL.
"""

from __future__ import annotations

import argparse
import os
from typing import List

from thread_inbox.api.auth import token_for
from thread_inbox.database import Base, SessionLocal, engine
from thread_inbox.models import Booking, Campaign, Celebrity, User, UserRole


def seed(prefix: str, customers: int, agents: int, celebrities: int) -> List[str]:
    """Create the actors and one booking plus one campaign per customer."""
    Base.metadata.create_all(bind=engine)
    tokens: List[str] = []
    db = SessionLocal()
    try:
        celebs = [Celebrity(name=f"{prefix.title()} Star {i}") for i in range(1, celebrities + 1)]
        db.add_all(celebs)
        db.commit()

        for i in range(1, customers + 1):
            user = User(username=f"{prefix}{i}", email=f"{prefix}{i}@example.com", first_name=f"Test{i}", role=UserRole.CUSTOMER)
            db.add(user)
            db.flush()
            celeb = celebs[i % len(celebs)]
            db.add(Booking(user_id=user.id, celebrity_id=celeb.id))
            db.add(Campaign(user_id=user.id, celebrity_id=celeb.id, title=f"Campaign {i}"))
            tokens.append(token_for(user.id, UserRole.CUSTOMER))

        for i in range(1, agents + 1):
            agent = User(username=f"{prefix}-agent{i}", email=f"{prefix}-agent{i}@example.com", role=UserRole.AGENT)
            db.add(agent)
            db.flush()
            tokens.append(token_for(agent.id, UserRole.AGENT))
        db.commit()
    finally:
        db.close()
    print(f"Done. customers={customers} agents={agents} celebrities={celebrities}")
    return tokens


def write_tokens(path: str, tokens: List[str]) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for tok in tokens:
            f.write(f"{tok}\n")
    print(f"Wrote {len(tokens)} tokens to {path}")


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--prefix", default="load", help="Username prefix, e.g. 'load' -> load1")
    ap.add_argument("--customers", type=int, default=50, help="Number of customers to create")
    ap.add_argument("--agents", type=int, default=1, help="Number of agents to create")
    ap.add_argument("--celebrities", type=int, default=5, help="Number of celebrity personas")
    ap.add_argument("--outfile", default="load/tokens.csv", help="Output file (one bearer token per line)")
    args = ap.parse_args()

    tokens = seed(args.prefix, args.customers, args.agents, max(1, args.celebrities))
    write_tokens(args.outfile, tokens)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
