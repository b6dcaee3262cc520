"""Run one scripted session against a live ingest service.

    python -m sim            (from 02_src, with main.py serving)
"""

import asyncio
import os
from pathlib import Path

from dotenv import load_dotenv

from tibera.client import ClientEnvironment, FileLocalStore, HttpTransport, get_event_queue
from tibera.logging_config import setup_logging

from .sim import Sim


async def run() -> None:
    environment = ClientEnvironment(storage=FileLocalStore())
    transport = HttpTransport(headers={"X-User-Id": os.getenv("SIM_USER_ID", "sim-user")})
    queue = get_event_queue(environment=environment, transport=transport)

    sim = Sim(queue, environment)
    await sim.run()
    await queue.close(flush_pending=True)


def main() -> None:
    project_root = Path(__file__).resolve().parent.parent.parent
    load_dotenv(project_root / ".env")
    setup_logging(console_only=True)
    asyncio.run(run())


if __name__ == "__main__":
    main()
