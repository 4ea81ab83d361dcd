"""
Generate (and save) the daily digest for one user.

Usage:
    python scripts/run_daily_digest.py --user <user-id> [--date YYYY-MM-DD] [--no-persist]
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from loguru import logger

from lumo.agents.digest import DigestService
from lumo.agents.orchestrator import get_orchestrator
from lumo.agents.types import Scope
from lumo.config.settings import settings
from lumo.infra import close_database, get_store
from lumo.utils.logger import setup_logger


async def run(user_id: str, date: str, persist: bool) -> int:
    service = DigestService(get_orchestrator(), get_store())
    scope = Scope.for_user(user_id)

    result = await service.generate_digest(scope, date)
    print(result.payload.markdown)

    if persist:
        try:
            digest_id = await service.persist(scope, result)
            logger.info(f"✅ Digest {result.payload.date} saved as {digest_id}")
        except Exception as e:
            logger.error(f"❌ Failed to save digest: {e}")
            return 1
    return 0


def main():
    parser = argparse.ArgumentParser(description="Generate the daily digest for a user")
    parser.add_argument("--user", default=settings.dev_user_id, help="User id (defaults to DEV_USER_ID)")
    parser.add_argument("--date", default=None, help="Day to digest, YYYY-MM-DD (defaults to today UTC)")
    parser.add_argument("--no-persist", action="store_true", help="Print the digest without saving it")
    args = parser.parse_args()

    setup_logger(settings.log_level)
    try:
        code = asyncio.run(run(args.user, args.date, not args.no_persist))
    finally:
        close_database()
    sys.exit(code)


if __name__ == "__main__":
    main()
