# examples/manage_contexts.py
"""
Log into a SAS Viya server and manage a compute context.

    VIYAKIT_SERVER_URL=https://viya.example.com \
    VIYA_USERNAME=me VIYA_PASSWORD=secret \
    python examples/manage_contexts.py
"""
from __future__ import annotations

import logging
import os

import anyio

from viyakit import ClientSession, ClientSettings, EditContextInput, ViyaKitError

logger = logging.getLogger("manage_contexts")

CONTEXT_NAME = "viyakit example compute context"
LAUNCHER_NAME = "viyakit example launcher context"


async def main() -> None:
    settings = ClientSettings()
    logging.basicConfig(level="DEBUG" if settings.debug else settings.log_level)

    async def announce() -> None:
        logger.info("Session established")

    async with ClientSession(settings, on_login=announce) as session:
        result = await session.log_in(os.environ["VIYA_USERNAME"], os.environ["VIYA_PASSWORD"])
        if not result.isLoggedIn:
            logger.error("Login failed for %s", result.userName)
            return

        contexts = session.contexts
        for summary in await contexts.get_compute_contexts():
            logger.info("compute context: %s (%s)", summary.name, summary.id)

        try:
            created = await contexts.create_compute_context(
                CONTEXT_NAME,
                LAUNCHER_NAME,
                None,
                ["options nonotes;"],
            )
            logger.info("created %s", created.id)

            await contexts.edit_compute_context(
                CONTEXT_NAME,
                EditContextInput(description="Managed by viyakit", attributes={"reuseServerProcesses": False}),
            )
            await contexts.delete_compute_context(CONTEXT_NAME)
        except ViyaKitError as e:
            logger.error("%s", e.message)

        await session.log_out()


if __name__ == "__main__":
    anyio.run(main)
