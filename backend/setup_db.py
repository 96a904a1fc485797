"""
Setup script to create database tables and test the connection.
Run this after setting DATABASE_URL (or DATABASE_PUBLIC_URL) in .env.
Use `alembic upgrade head` instead for databases managed by migrations.
"""
import sys
from sqlalchemy import inspect, text
from creative_rag.database import engine, Base
from creative_rag.models import CampaignDocument, CampaignAnalysis, DocumentChunk, ProcessingRun  # noqa: F401
from creative_rag.config import get_settings


def main():
    try:
        settings = get_settings()
        print(f"🔌 Connecting to database...")
        print(f"   URL: {settings.get_database_url()[:30]}...")

        # Test connection
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            print(f"✅ Connected ({engine.dialect.name})")

        # Create tables
        print(f"\n📦 Creating tables...")
        Base.metadata.create_all(bind=engine)
        print(f"✅ Tables created successfully!")

        # List tables
        print(f"\n📋 Tables in database:")
        for table_name in sorted(inspect(engine).get_table_names()):
            print(f"   - {table_name}")

        print(f"\n🎉 Database setup complete!")
        print(f"\nNext steps:")
        print(f"1. Ingest a campaign folder: python run_campaign_rag.py ingest <folder>")
        print(f"2. Ask a question: python run_campaign_rag.py ask \"<question>\"")

    except Exception as e:
        print(f"❌ Error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
