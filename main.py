#!/usr/bin/env python3
import asyncio
import logging
import sys
from typing import Callable, Optional

import aiohttp
from aiohttp import web

import constants
from config import load_config, AppConfig
from bot.handlers import (
    CONTEXT_ERROR_KEY,
    HTTP_SESSION_KEY,
    NOTIFIER_KEY,
    RUN_LOCK_KEY,
    TRADING_CONTEXT_KEY,
    bot_handler,
    health_handler,
)
from pipeline_runner import PipelineRunner, TradingContext, create_trading_context
from services.exceptions import PipelineFatalError
from services.telegram_notifier import TelegramNotifier

logger = logging.getLogger(__name__)

ContextFactory = Callable[[AppConfig, aiohttp.ClientSession], TradingContext]

_LEVEL_COLOURS = {
    logging.DEBUG: constants.C_BLUE,
    logging.INFO: constants.C_GREEN,
    logging.WARNING: constants.C_YELLOW,
    logging.ERROR: constants.C_RED,
    logging.CRITICAL: constants.C_RED,
}


class ColourFormatter(logging.Formatter):
    """Colours the level name with the ANSI codes from constants."""

    def format(self, record: logging.LogRecord) -> str:
        colour = _LEVEL_COLOURS.get(record.levelno, "")
        record.levelname_coloured = f"{colour}{record.levelname}{constants.C_RESET}"
        return super().format(record)


def configure_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(ColourFormatter("%(asctime)s [%(levelname_coloured)s] %(name)s: %(message)s"))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)

    # Keep transport chatter (and bot tokens in URLs) out of the console.
    for noisy in ("aiohttp.access", "web3", "urllib3", "httpx", "telegram"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def build_notifier(config: AppConfig) -> Optional[TelegramNotifier]:
    if config.telegram_bot_token and config.telegram_chat_id:
        return TelegramNotifier(config.telegram_bot_token, config.telegram_chat_id)
    return None


def create_app(config: AppConfig, context_factory: ContextFactory = create_trading_context) -> web.Application:
    """Wires the HTTP trigger; the trading context is built once on startup."""

    async def on_startup(app: web.Application) -> None:
        # Create and store a single, shared aiohttp session
        session = aiohttp.ClientSession(headers={'User-Agent': 'BaseDipBot/1.0'})
        app[HTTP_SESSION_KEY] = session
        try:
            app[TRADING_CONTEXT_KEY] = context_factory(config, session)
            logger.info("Trading context initialised.")
        except PipelineFatalError as exc:
            logger.error("Trading context unavailable: %s", exc)
            app[CONTEXT_ERROR_KEY] = str(exc)

    async def on_cleanup(app: web.Application) -> None:
        session = app.get(HTTP_SESSION_KEY)
        if session:
            await session.close()

    app = web.Application()
    app[RUN_LOCK_KEY] = asyncio.Lock()
    app[NOTIFIER_KEY] = build_notifier(config)
    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)
    app.router.add_get(constants.BOT_ROUTE, bot_handler)
    app.router.add_post(constants.BOT_ROUTE, bot_handler)
    app.router.add_get(constants.HEALTH_ROUTE, health_handler)
    return app


async def run_once(config: AppConfig, context_factory: ContextFactory = create_trading_context) -> int:
    """Runs a single pass from the command line and returns the process exit code."""
    notifier = build_notifier(config)
    async with aiohttp.ClientSession(headers={'User-Agent': 'BaseDipBot/1.0'}) as session:
        try:
            context = context_factory(config, session)
            summary = await PipelineRunner(context).run()
        except PipelineFatalError as exc:
            print(f"{constants.C_RED}Trading pass aborted: {exc}{constants.C_RESET}")
            if notifier:
                await notifier.notify(None, str(exc))
            return 1

    if notifier:
        await notifier.notify(summary)
    print(summary.message)
    for outcome in summary.outcomes:
        print(f"  - {outcome.describe()}")
    return 0


def main() -> None:
    """The main synchronous entry point for the application."""
    config = load_config()
    configure_logging(config.log_level)

    if config.run_once:
        sys.exit(asyncio.run(run_once(config)))

    logger.info("Serving trading trigger on http://%s:%s%s", config.host, config.port, constants.BOT_ROUTE)
    web.run_app(create_app(config), host=config.host, port=config.port, print=None)


if __name__ == "__main__":
    main()
