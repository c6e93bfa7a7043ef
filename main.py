"""
SyncLife — Entry Point.

Single entry point: `python main.py` loads the snapshot and runs the
reminder engine until interrupted.
"""

import asyncio
import logging

from synclife.config import settings

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from synclife.adapters.telegram_notifier import create_telegram_notifier
from synclife.core.service import SyncLifeService
from synclife.data.snapshot_store import JsonSnapshotStore

logger = logging.getLogger(__name__)


async def run() -> None:
    service = SyncLifeService(
        settings,
        JsonSnapshotStore(settings.DATA_PATH),
        sink=create_telegram_notifier(settings.TELEGRAM_BOT_TOKEN, settings.TELEGRAM_CHAT_ID),
    )
    await service.start()
    try:
        await asyncio.Event().wait()
    finally:
        await service.stop()


def main() -> None:
    logger.info("Starting SyncLife reminder engine...")
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
