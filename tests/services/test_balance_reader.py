from decimal import Decimal

import pytest

from analysis.models import Token
from services.balance_reader import BalanceReader
from services.exceptions import BalanceReadError

OWNER = '0x00000000000000000000000000000000000000aa'
BRETT = Token(id='based-brett', symbol='brett', address='0x00000000000000000000000000000000000000b1')
AERO = Token(id='aerodrome-finance', symbol='aero', address='0x00000000000000000000000000000000000000b2')
NO_ADDRESS = Token(id='mystery', symbol='mys', address=None)


class FakeCall:
    def __init__(self, value):
        self._value = value

    def call(self):
        if isinstance(self._value, Exception):
            raise self._value
        return self._value


class FakeFunctions:
    def __init__(self, balance, decimals):
        self._balance = balance
        self._decimals = decimals
        self.decimals_calls = 0

    def balanceOf(self, owner):
        return FakeCall(self._balance)

    def decimals(self):
        self.decimals_calls += 1
        return FakeCall(self._decimals)


class FakeContract:
    def __init__(self, functions):
        self.functions = functions


class FakeEth:
    def __init__(self, native_wei, tokens):
        self._native_wei = native_wei
        self._tokens = tokens

    def get_balance(self, owner):
        if isinstance(self._native_wei, Exception):
            raise self._native_wei
        return self._native_wei

    def contract(self, address, abi):
        return FakeContract(self._tokens[address])


class FakeWeb3:
    def __init__(self, native_wei, tokens):
        self.eth = FakeEth(native_wei, tokens)

    @staticmethod
    def to_checksum_address(address):
        return address


@pytest.mark.asyncio
async def test_snapshot_contains_tokens_and_native_balance():
    web3 = FakeWeb3(2 * 10 ** 17, {
        BRETT.address: FakeFunctions(1_500 * 10 ** 18, 18),
        AERO.address: FakeFunctions(25 * 10 ** 6, 6),
    })

    snapshot = await BalanceReader(web3).get_balances(OWNER, [BRETT, AERO])

    assert snapshot.native_symbol == 'ETH'
    assert snapshot.native_balance == Decimal('0.2')
    assert snapshot.get('brett') == Decimal(1500)
    assert snapshot.get('aero') == Decimal(25)


@pytest.mark.asyncio
async def test_unreadable_token_is_omitted_not_fatal():
    web3 = FakeWeb3(10 ** 18, {
        BRETT.address: FakeFunctions(RuntimeError('execution reverted'), 18),
        AERO.address: FakeFunctions(10 ** 18, 18),
    })

    snapshot = await BalanceReader(web3).get_balances(OWNER, [BRETT, NO_ADDRESS, AERO])

    assert snapshot.has('brett') is False
    assert snapshot.has('mys') is False
    assert snapshot.get('aero') == Decimal(1)
    assert snapshot.native_balance == Decimal(1)


@pytest.mark.asyncio
async def test_decimals_are_cached_between_reads():
    functions = FakeFunctions(10 ** 18, 18)
    reader = BalanceReader(FakeWeb3(0, {BRETT.address: functions}))

    await reader.get_balances(OWNER, [BRETT])
    await reader.get_balances(OWNER, [BRETT])

    assert functions.decimals_calls == 1


@pytest.mark.asyncio
async def test_native_balance_failure_is_raised():
    reader = BalanceReader(FakeWeb3(ConnectionError('rpc down'), {}))
    with pytest.raises(BalanceReadError):
        await reader.get_balances(OWNER, [])
