"""Entrypoint: python -m messaging_client"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from messaging_client.client import MessagingClient
from messaging_client.config import settings
from messaging_client.presentation.console import ConsoleView


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Terminal client for the messaging service")
    parser.add_argument("--api-url", default=settings.API_BASE_URL, help="REST base URL")
    parser.add_argument("--ws-url", default=settings.WS_URL, help="WebSocket URL")
    parser.add_argument("--token", default=settings.ACCESS_TOKEN, help="Access token (JWT)")
    parser.add_argument("--open", dest="conversation_id", help="Conversation to open on start")
    return parser.parse_args()


async def _main() -> None:
    args = parse_args()
    config = settings.model_copy(
        update={"API_BASE_URL": args.api_url, "WS_URL": args.ws_url, "ACCESS_TOKEN": args.token},
    )
    async with MessagingClient.from_settings(config) as client:
        view = ConsoleView(client)
        view.attach()
        await client.connect()
        await client.load_conversations()
        if args.conversation_id:
            await client.set_active_conversation(args.conversation_id)
        print(view.render())

        while True:
            line = await asyncio.to_thread(sys.stdin.readline)
            if not line:
                break
            if not await view.handle_line(line):
                break


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(_main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
