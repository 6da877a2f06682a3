#!/usr/bin/env python3
"""Uniswap V2-style router: quotes and exact-input swaps along a fixed path."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from web3.exceptions import TimeExhausted

from constants import RECEIPT_TIMEOUT_SECONDS
from services.exceptions import QuoteError, SubmissionError

ROUTER_ABI = [
    {
        "name": "getAmountsOut",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "amountIn", "type": "uint256"},
            {"name": "path", "type": "address[]"},
        ],
        "outputs": [{"name": "amounts", "type": "uint256[]"}],
    },
    {
        "name": "swapExactTokensForTokens",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "amountIn", "type": "uint256"},
            {"name": "amountOutMin", "type": "uint256"},
            {"name": "path", "type": "address[]"},
            {"name": "to", "type": "address"},
            {"name": "deadline", "type": "uint256"},
        ],
        "outputs": [{"name": "amounts", "type": "uint256[]"}],
    },
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SwapRequest:
    amount_in: int
    amount_out_min: int
    path: Tuple[str, ...]
    to: str
    deadline: int


class DexRouter:
    """Typed wrapper over the two router calls the bot uses."""

    def __init__(self, web3, account, router_address: str, *, receipt_timeout: float = RECEIPT_TIMEOUT_SECONDS) -> None:
        self.web3 = web3
        self.account = account
        self.router_address = web3.to_checksum_address(router_address)
        self.contract = web3.eth.contract(address=self.router_address, abi=ROUTER_ABI)
        self.receipt_timeout = receipt_timeout

    async def get_amounts_out(self, amount_in: int, path: Sequence[str]) -> List[int]:
        return await asyncio.to_thread(self._get_amounts_out_sync, amount_in, path)

    async def swap_exact_tokens_for_tokens(self, request: SwapRequest) -> str:
        return await asyncio.to_thread(self._swap_sync, request)

    def _checksum_path(self, path: Sequence[str]) -> List[str]:
        if len(path) < 2 or any(not hop for hop in path):
            raise ValueError(f"path needs at least two token addresses, got {list(path)}")
        return [self.web3.to_checksum_address(hop) for hop in path]

    def _get_amounts_out_sync(self, amount_in: int, path: Sequence[str]) -> List[int]:
        try:
            checksum_path = self._checksum_path(path)
            amounts = self.contract.functions.getAmountsOut(int(amount_in), checksum_path).call()
        except Exception as exc:
            raise QuoteError(f"quote failed: {exc}") from exc
        if not isinstance(amounts, (list, tuple)) or len(amounts) != len(path):
            raise QuoteError(f"unexpected quote shape: {amounts!r}")
        return [int(amount) for amount in amounts]

    def _swap_sync(self, request: SwapRequest) -> str:
        sender = self.account.address
        try:
            fn = self.contract.functions.swapExactTokensForTokens(
                int(request.amount_in),
                int(request.amount_out_min),
                self._checksum_path(request.path),
                self.web3.to_checksum_address(request.to),
                int(request.deadline),
            )
            tx = fn.build_transaction({
                "from": sender,
                "nonce": self.web3.eth.get_transaction_count(sender, "pending"),
                "chainId": self.web3.eth.chain_id,
            })
            signed = self.account.sign_transaction(tx)
            tx_hash = self.web3.to_hex(self.web3.eth.send_raw_transaction(signed.raw_transaction))
        except Exception as exc:
            raise SubmissionError(f"swap submission failed: {exc}") from exc

        logger.info("Swap broadcast: %s", tx_hash)

        # A broadcast swap may still be mined; only a reverted receipt counts as failed.
        try:
            receipt = self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        except TimeExhausted:
            logger.warning("No receipt for %s after %ss; treating it as pending.", tx_hash, self.receipt_timeout)
            return tx_hash
        except Exception as exc:
            logger.warning("Could not fetch receipt for %s: %s", tx_hash, exc)
            return tx_hash
        if int(receipt["status"]) != 1:
            raise SubmissionError(f"transaction {tx_hash} reverted", tx_hash=tx_hash)
        return tx_hash
