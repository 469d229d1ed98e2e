"""Market data sources."""

from cryptosignals.data.binance import BinanceKlineClient, parse_kline, parse_klines

__all__ = ["BinanceKlineClient", "parse_kline", "parse_klines"]
