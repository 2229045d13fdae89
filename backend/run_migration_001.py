#!/usr/bin/env python3
"""
Manual script to run migration 001 (default capacity profiles).
Run this from the backend directory or adjust the import path.
"""
import sys
import os

# Add backend directory to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from db import create_db_and_tables, engine
from migrations.migrate_001_provision_capacity_profiles import migrate
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

if __name__ == "__main__":
    logger.info("Running migration 001 manually...")
    try:
        create_db_and_tables()
        created = migrate(engine)
        logger.info(f"✅ Migration 001 completed successfully! ({created} profiles created)")
    except Exception as e:
        logger.error(f"❌ Migration 001 failed: {e}")
        import traceback
        logger.error(traceback.format_exc())
        sys.exit(1)
