#!/usr/bin/env python
"""Start the FileMentor arq worker (file extraction and maintenance crons).

The worker is created inside the running loop; arq's own CLI calls
``asyncio.get_event_loop()`` before one exists on Python 3.12+.
"""

import asyncio
import logging

from arq.worker import create_worker

from filementor.config import get_settings
from filementor.workers.tasks import WorkerSettings

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("filementor.worker")


async def main() -> None:
    worker = create_worker(WorkerSettings)
    logger.info(
        "Worker listening for %s with %d cron jobs",
        ", ".join(f.__name__ for f in WorkerSettings.functions),
        len(WorkerSettings.cron_jobs),
    )
    try:
        await worker.main()
    finally:
        await worker.close()


if __name__ == "__main__":
    asyncio.run(main())
