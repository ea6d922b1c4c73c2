"""
Initialize Database Script
Creates the credential table used when CREDENTIAL_SINK=database.
"""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path to import project modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from oauth_broker.config import settings
from oauth_broker.database import close_db, init_db
import oauth_broker.models  # noqa: F401  (registers tables on Base.metadata)


async def main() -> None:
    """Create missing tables, then release the engine."""
    print(f"Creating tables on {settings.database_url.split('@')[-1]} ...")
    try:
        await init_db()
    finally:
        await close_db()
    print("Done.")


if __name__ == "__main__":
    asyncio.run(main())
