"""Create the outcome tables on the configured database."""

from fairseed.db.session import create_tables

if __name__ == "__main__":
    create_tables()
    print("Database initialized.")
