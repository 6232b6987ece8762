"""
Symbol helpers: display names and contract-shape detection.
"""

from __future__ import annotations

from typing import Iterable

_BITMEX_DISPLAY = {
    "XBTUSD": "BTCUSD",
    "XBTUSDT": "BTCUSDT",
}

_BINANCE_DISPLAY = {
    "BTCUSD_PERP": "BTCUSD",
    "ETHUSD_PERP": "ETHUSD",
}

_OKX_DISPLAY = {
    "BTC-USDT-SWAP": "BTCUSDT",
    "ETH-USDT-SWAP": "ETHUSDT",
    "BTC-USD-SWAP": "BTCUSD",
    "ETH-USD-SWAP": "ETHUSD",
}

DEFAULT_HEDGE_MARKERS: tuple[str, ...] = ("-SWAP", "-USDT-", "_PERP")
DEFAULT_HEDGE_SUFFIXES: tuple[str, ...] = ("USDT", "USDC", "BUSD")


def format_symbol(symbol: str, exchange: str | None = None) -> str:
    """Human-facing symbol, e.g. XBTUSD -> BTCUSD, BTC-USDT-SWAP -> BTCUSDT."""
    exchange = (exchange or "").lower()
    if exchange == "okx" or symbol.endswith("-SWAP"):
        if symbol in _OKX_DISPLAY:
            return _OKX_DISPLAY[symbol]
        return symbol.replace("-SWAP", "").replace("-", "")
    if exchange in ("binance", "bybit"):
        return _BINANCE_DISPLAY.get(symbol, symbol)
    if symbol in _BITMEX_DISPLAY:
        return _BITMEX_DISPLAY[symbol]
    return symbol.replace("XBT", "BTC")


def is_hedge_mode_symbol(
    symbol: str,
    markers: Iterable[str] = DEFAULT_HEDGE_MARKERS,
    suffixes: Iterable[str] = DEFAULT_HEDGE_SUFFIXES,
) -> bool:
    """True when the symbol looks like a linear / perpetual-swap contract.

    Perpetual-swap delimiters (``-SWAP``, ``-USDT-``, ``_PERP``) or a
    stablecoin quote suffix (``BTCUSDT``) mark a hedge-mode venue. Anything
    else (``XBTUSD``, ``ETHUSD``) is treated as an inverse contract.
    """
    upper = symbol.upper()
    if any(m.upper() in upper for m in markers):
        return True
    return any(upper.endswith(s.upper()) for s in suffixes)
