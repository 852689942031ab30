"""
Initialize the signup database schema
Creates the early_access_signups table and its indexes
"""
import sys
import os

# Add parent directory to path to import backend modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.database import Base, engine
from models.early_access import EarlyAccessSignup  # noqa: F401


def init_database():
    """Create all tables in the database"""
    print("Creating tables...")

    try:
        Base.metadata.create_all(bind=engine)
        print("✓ Tables created successfully!")
        print("\nCreated tables:")
        for name in Base.metadata.tables:
            print(f"  - {name}")
    except Exception as e:
        print(f"✗ Error creating tables: {e}")
        sys.exit(1)

if __name__ == "__main__":
    init_database()
