"""Create missing tables and add columns/indexes missing from existing ones."""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from quotation.database import engine, Base
import quotation.models  # noqa: F401 - registers all models
from quotation.utils.schema_sync import sync_missing_schema_objects


def init_db():
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    added = sync_missing_schema_objects(engine, Base.metadata)
    print(f"Database initialized ({len(added)} schema objects added to existing tables).")


if __name__ == "__main__":
    init_db()
