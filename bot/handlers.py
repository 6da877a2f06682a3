#!/usr/bin/env python3
import asyncio
import logging
from typing import Optional

import aiohttp
from aiohttp import web

from analysis.models import RunSummary
from pipeline_runner import PipelineRunner, TradingContext
from services.exceptions import PipelineFatalError
from services.telegram_notifier import TelegramNotifier

logger = logging.getLogger(__name__)

HTTP_SESSION_KEY = web.AppKey("http_session", aiohttp.ClientSession)
TRADING_CONTEXT_KEY = web.AppKey("trading_context", object)
CONTEXT_ERROR_KEY = web.AppKey("context_error", str)
NOTIFIER_KEY = web.AppKey("notifier", object)
RUN_LOCK_KEY = web.AppKey("run_lock", asyncio.Lock)

# --- Trading pass ---

async def execute_trading_pass(app: web.Application) -> RunSummary:
    """Runs one pass; passes triggered on the same process wait for each other."""
    context: Optional[TradingContext] = app.get(TRADING_CONTEXT_KEY)
    if context is None:
        raise PipelineFatalError(app.get(CONTEXT_ERROR_KEY) or "Trading context is not initialised.")
    async with app[RUN_LOCK_KEY]:
        return await PipelineRunner(context).run()


async def _notify(app: web.Application, summary: Optional[RunSummary], error: Optional[str] = None) -> None:
    notifier: Optional[TelegramNotifier] = app.get(NOTIFIER_KEY)
    if notifier is not None:
        await notifier.notify(summary, error)

# --- HTTP Handlers ---

async def bot_handler(request: web.Request) -> web.Response:
    """Triggers a trading pass and reports the summary."""
    logger.info("Bot triggered...")
    app = request.app
    try:
        summary = await execute_trading_pass(app)
    except PipelineFatalError as e:
        logger.error("Error in bot execution: %s", e)
        await _notify(app, None, str(e))
        return web.json_response({'error': str(e)}, status=500)
    except Exception as e:
        logger.exception("Unexpected error in bot execution")
        await _notify(app, None, str(e))
        return web.json_response({'error': str(e) or type(e).__name__}, status=500)

    await _notify(app, summary)
    return web.json_response({
        'message': summary.message,
        'executed': summary.executed,
        'skipped': summary.skipped,
        'failed': summary.failed,
        'outcomes': [outcome.to_dict() for outcome in summary.outcomes],
    })


async def health_handler(request: web.Request) -> web.Response:
    return web.json_response({'status': 'ok'})
