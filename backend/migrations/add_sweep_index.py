"""
Migration: Add the duplicate sweep ordering index to ocorrencias.

The sweep reads every production row ordered by device, date and time. Tables
created before the index was declared on the model only have the primary key.
Also adds created_at, the sweep's tie-breaker for same-minute submissions, and
backfills it on existing rows so they sort before anything inserted later.
"""
from sqlalchemy import create_engine, inspect, text
import os

# Use same DB URL pattern as main app
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+psycopg2://{os.getenv('USER', 'postgres')}@localhost:5432/bairro"
)

def run_migration():
    """Add created_at and idx_ocorrencias_sweep if missing."""
    engine = create_engine(DATABASE_URL)
    inspector = inspect(engine)

    columns = [column["name"] for column in inspector.get_columns("ocorrencias")]
    indexes = [index["name"] for index in inspector.get_indexes("ocorrencias")]

    with engine.connect() as conn:
        if "created_at" in columns:
            print("created_at column already exists")
        else:
            conn.execute(text("""
                ALTER TABLE ocorrencias
                ADD COLUMN created_at TIMESTAMP
            """))
            print("Added created_at column to ocorrencias table")

        # Existing rows predate every new one; PostgreSQL sorts NULL last
        result = conn.execute(text("""
            UPDATE ocorrencias
            SET created_at = '1970-01-01 00:00:00'
            WHERE created_at IS NULL
        """))
        print(f"Backfilled created_at on {result.rowcount} existing rows")

        if "idx_ocorrencias_sweep" in indexes:
            print("idx_ocorrencias_sweep already exists")
        else:
            conn.execute(text("""
                CREATE INDEX idx_ocorrencias_sweep
                ON ocorrencias (uuid, data_data, data_hora)
            """))
            print("Created idx_ocorrencias_sweep on ocorrencias")

        conn.commit()

if __name__ == "__main__":
    run_migration()
