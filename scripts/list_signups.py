"""
Print the most recent early access signups (digests are never loaded)
Usage: python scripts/list_signups.py [limit]
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.database import SessionLocal
from utils.signup_store import SignupStore


def list_signups(limit: int = 50):
    db = SessionLocal()
    try:
        store = SignupStore(db)
        print(f"Total signups: {store.count()}")
        for rec in store.list_recent(limit):
            meta = rec["metadata"]
            print(f"  {rec['signupDate']}  {rec['email']}  source={meta['source']}  campaign={meta['campaign'] or '-'}")
    finally:
        db.close()

if __name__ == "__main__":
    list_signups(int(sys.argv[1]) if len(sys.argv) > 1 else 50)
