#!/usr/bin/env python3
"""On-chain wallet balances for the native asset and the candidate tokens."""
from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Dict, Iterable

from analysis.models import BalanceSnapshot, Token
from constants import NATIVE_DECIMALS, NATIVE_SYMBOL
from services.exceptions import BalanceReadError

ERC20_ABI = [
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "payable": False,
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "payable": False,
        "stateMutability": "view",
        "type": "function",
    },
]

logger = logging.getLogger(__name__)


def from_base_units(amount: int, decimals: int) -> Decimal:
    return Decimal(int(amount)) / (Decimal(10) ** decimals)


class BalanceReader:
    """Reads balances one token at a time; unreadable tokens are left out of the snapshot."""

    def __init__(self, web3, native_symbol: str = NATIVE_SYMBOL) -> None:
        self.web3 = web3
        self.native_symbol = native_symbol
        self._decimals_cache: dict[str, int] = {}

    async def get_balances(self, owner: str, tokens: Iterable[Token]) -> BalanceSnapshot:
        return await asyncio.to_thread(self._get_balances_sync, owner, list(tokens))

    def _get_balances_sync(self, owner: str, tokens: list[Token]) -> BalanceSnapshot:
        logger.info("Fetching wallet balances...")
        owner = self.web3.to_checksum_address(owner)
        balances: Dict[str, Decimal] = {}

        for token in tokens:
            try:
                balances[token.symbol] = self._read_token_balance(owner, token)
                logger.info("Balance for %s: %s", token.symbol, balances[token.symbol])
            except BalanceReadError as exc:
                logger.warning("Error fetching balance for %s: %s", token.symbol, exc)

        balances[self.native_symbol] = self._read_native_balance(owner)
        logger.info("Native %s balance: %s", self.native_symbol, balances[self.native_symbol])
        return BalanceSnapshot(native_symbol=self.native_symbol, balances=balances)

    def _read_native_balance(self, owner: str) -> Decimal:
        try:
            wei = self.web3.eth.get_balance(owner)
        except Exception as exc:
            raise BalanceReadError(f"native balance unavailable: {exc}") from exc
        return from_base_units(wei, NATIVE_DECIMALS)

    def _read_token_balance(self, owner: str, token: Token) -> Decimal:
        if not token.address:
            raise BalanceReadError("missing contract address")
        try:
            address = self.web3.to_checksum_address(token.address)
            contract = self.web3.eth.contract(address=address, abi=ERC20_ABI)
            raw = contract.functions.balanceOf(owner).call()
            decimals = self._get_token_decimals(address, contract)
        except Exception as exc:
            raise BalanceReadError(str(exc)) from exc
        return from_base_units(raw, decimals)

    def _get_token_decimals(self, address: str, contract) -> int:
        if address not in self._decimals_cache:
            self._decimals_cache[address] = int(contract.functions.decimals().call())
        return self._decimals_cache[address]
