from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from analysis.models import BalanceSnapshot, OutcomeStatus, PricePoint, SkipReason, Token
from config import load_config
from pipeline_runner import PipelineRunner, TradingContext, create_trading_context
from services.exceptions import BalanceReadError, PipelineFatalError, QuoteError
from services.trade_executor import TradeExecutor

WETH = '0x4200000000000000000000000000000000000006'
WALLET = '0x00000000000000000000000000000000000000aa'
TOKENS = [
    Token(id='based-brett', symbol='brett', address='0x00000000000000000000000000000000000000b1'),
    Token(id='aerodrome-finance', symbol='aero', address='0x00000000000000000000000000000000000000b2'),
    Token(id='degen-base', symbol='degen', address='0x00000000000000000000000000000000000000b3'),
]
DIP = tuple(PricePoint(timestamp_ms=i, price=p) for i, p in enumerate([100, 100, 100, 100, 100, 100, 80]))


@pytest.fixture
def config(monkeypatch):
    for name in ('PRIVATE_KEY', 'MIN_PROFIT', 'TOKEN_PAGE_SIZE', 'TOKEN_CATEGORY', 'TREND_WINDOW_DAYS'):
        monkeypatch.delenv(name, raising=False)
    return load_config([])


def _context(config, *, tokens=TOKENS, native='0.1', history=None, router=None, balance_error=None, universe_error=None):
    market_data = MagicMock()
    market_data.list_top_tokens = AsyncMock(return_value=list(tokens), side_effect=universe_error)
    market_data.fetch_price_history = AsyncMock(side_effect=history or (lambda token_id, days: DIP))
    balance_reader = MagicMock()
    balance_reader.get_balances = AsyncMock(
        return_value=BalanceSnapshot(native_symbol='ETH', balances={'ETH': Decimal(native)}),
        side_effect=balance_error,
    )
    if router is None:
        router = MagicMock()
        router.get_amounts_out = AsyncMock(return_value=[10 ** 17, 10 ** 18])
        router.swap_exact_tokens_for_tokens = AsyncMock(return_value='0xfeed')
    executor = TradeExecutor(
        market_data, router,
        wallet_address=WALLET, base_token_address=WETH, min_profit=config.min_profit,
    )
    context = TradingContext(
        config=config,
        wallet_address=WALLET,
        market_data=market_data,
        balance_reader=balance_reader,
        executor=executor,
    )
    return context, market_data, balance_reader, router


@pytest.mark.asyncio
async def test_run_produces_one_outcome_per_token_in_provider_order(config):
    context, market_data, balance_reader, router = _context(config)

    summary = await PipelineRunner(context).run()

    assert [o.token.symbol for o in summary.outcomes] == ['brett', 'aero', 'degen']
    assert summary.executed == 3
    market_data.list_top_tokens.assert_awaited_once_with(5, 'base-network')
    balance_reader.get_balances.assert_awaited_once_with(WALLET, TOKENS)
    assert router.swap_exact_tokens_for_tokens.await_count == 3


@pytest.mark.asyncio
async def test_zero_native_balance_skips_every_token(config):
    context, market_data, _, router = _context(config, native='0')

    summary = await PipelineRunner(context).run()

    assert [o.reason for o in summary.outcomes] == [SkipReason.NO_BALANCE] * 3
    market_data.fetch_price_history.assert_not_awaited()
    router.get_amounts_out.assert_not_awaited()
    router.swap_exact_tokens_for_tokens.assert_not_awaited()


@pytest.mark.asyncio
async def test_failure_for_one_token_does_not_stop_the_next(config):
    def history(token_id, days):
        if token_id == 'based-brett':
            raise RuntimeError('history endpoint exploded')
        return DIP

    router = MagicMock()
    router.get_amounts_out = AsyncMock(side_effect=[QuoteError('quote failed: no pair'), [10 ** 17, 10 ** 18]])
    router.swap_exact_tokens_for_tokens = AsyncMock(return_value='0xbeef')
    context, _, _, _ = _context(config, history=history, router=router)

    summary = await PipelineRunner(context).run()

    assert [o.status for o in summary.outcomes] == [
        OutcomeStatus.FAILED,
        OutcomeStatus.FAILED,
        OutcomeStatus.EXECUTED,
    ]
    assert summary.outcomes[2].tx_hash == '0xbeef'
    assert (summary.executed, summary.skipped, summary.failed) == (1, 0, 2)


@pytest.mark.asyncio
async def test_empty_universe_is_a_successful_empty_run(config):
    context, _, _, _ = _context(config, tokens=[])
    summary = await PipelineRunner(context).run()
    assert summary.outcomes == ()


@pytest.mark.asyncio
async def test_universe_fetch_exception_is_fatal(config):
    context, _, balance_reader, _ = _context(config, universe_error=RuntimeError('dns failure'))

    with pytest.raises(PipelineFatalError, match='token universe'):
        await PipelineRunner(context).run()
    balance_reader.get_balances.assert_not_awaited()


@pytest.mark.asyncio
async def test_balance_fetch_exception_is_fatal(config):
    context, _, _, router = _context(config, balance_error=BalanceReadError('native balance unavailable'))

    with pytest.raises(PipelineFatalError, match='wallet balances'):
        await PipelineRunner(context).run()
    router.get_amounts_out.assert_not_awaited()


def test_create_trading_context_requires_private_key(config):
    with pytest.raises(PipelineFatalError, match='Private key is missing'):
        create_trading_context(config, session=MagicMock())


def test_create_trading_context_rejects_invalid_key_without_echoing_it(config):
    bad = config._replace(private_key='not-a-key')
    with pytest.raises(PipelineFatalError) as excinfo:
        create_trading_context(bad, session=MagicMock())
    assert 'not-a-key' not in str(excinfo.value)


def test_create_trading_context_accepts_key_without_prefix(config):
    key = '4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318'
    context = create_trading_context(config._replace(private_key=key), session=MagicMock())

    assert context.wallet_address == '0x2c7536E3605D9C16a7a3D7b1898e529396a65c23'
    assert context.executor.wallet_address == context.wallet_address
    assert context.executor.min_profit_units == 10 ** 15
