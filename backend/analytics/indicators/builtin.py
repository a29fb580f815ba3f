"""Registry adapters for the library indicators.

Each adapter takes candles plus resolved dashboard parameters and returns
named series. Single-line indicators use the series name ``value``.
"""

from analytics.indicators.momentum import cci, mfi, rsi, stochastic, williams_r
from analytics.indicators.moving_averages import ema, sma
from analytics.indicators.registry import register_indicator
from analytics.indicators.trend import ichimoku, macd, parabolic_sar
from analytics.indicators.volatility import atr, bollinger_bands
from analytics.indicators.volume import obv, vwap
from analytics.models.candle import closes
from analytics.models.config import IndicatorType


@register_indicator(IndicatorType.SMA, lookback=lambda p: p["period"])
def _sma(candles, params):
    return {"value": sma(closes(candles), params["period"])}


@register_indicator(IndicatorType.EMA, lookback=lambda p: p["period"])
def _ema(candles, params):
    return {"value": ema(closes(candles), params["period"])}


@register_indicator(IndicatorType.RSI, lookback=lambda p: p["period"] + 1)
def _rsi(candles, params):
    return {"value": rsi(closes(candles), params["period"])}


@register_indicator(
    IndicatorType.MACD,
    lookback=lambda p: max(p["fastPeriod"], p["slowPeriod"]) + p["signalPeriod"] - 1,
)
def _macd(candles, params):
    result = macd(
        closes(candles),
        fast_period=params["fastPeriod"],
        slow_period=params["slowPeriod"],
        signal_period=params["signalPeriod"],
    )
    return {"macd": result.macd, "signal": result.signal, "histogram": result.histogram}


@register_indicator(IndicatorType.BOLLINGER_BANDS, lookback=lambda p: p["period"])
def _bollinger(candles, params):
    result = bollinger_bands(closes(candles), params["period"], params["stdDev"])
    return {"upper": result.upper, "middle": result.middle, "lower": result.lower}


@register_indicator(
    IndicatorType.STOCHASTIC,
    lookback=lambda p: p["kPeriod"] + p["dPeriod"] - 1,
)
def _stochastic(candles, params):
    result = stochastic(candles, params["kPeriod"], params["dPeriod"])
    return {"k": result.k, "d": result.d}


@register_indicator(IndicatorType.ATR, lookback=lambda p: max(p["period"], 2))
def _atr(candles, params):
    return {"value": atr(candles, params["period"])}


@register_indicator(IndicatorType.OBV)
def _obv(candles, params):
    return {"value": obv(candles)}


@register_indicator(IndicatorType.CCI, lookback=lambda p: p["period"])
def _cci(candles, params):
    return {"value": cci(candles, params["period"])}


@register_indicator(IndicatorType.WILLIAMS, lookback=lambda p: p["period"])
def _williams(candles, params):
    return {"value": williams_r(candles, params["period"])}


@register_indicator(IndicatorType.MFI, lookback=lambda p: p["period"] + 1)
def _mfi(candles, params):
    return {"value": mfi(candles, params["period"])}


@register_indicator(IndicatorType.PARABOLIC_SAR, lookback=lambda p: 2)
def _parabolic_sar(candles, params):
    return {"value": parabolic_sar(candles, params["acceleration"], params["maximum"])}


@register_indicator(
    IndicatorType.ICHIMOKU,
    lookback=lambda p: max(p["conversion"], p["base"], p["span"], p["displacement"] + 1),
)
def _ichimoku(candles, params):
    result = ichimoku(
        candles,
        conversion=params["conversion"],
        base=params["base"],
        span=params["span"],
        displacement=params["displacement"],
    )
    return {
        "conversion": result.conversion,
        "base": result.base,
        "leadingSpanA": result.leading_span_a,
        "leadingSpanB": result.leading_span_b,
        "lagging": result.lagging,
    }


@register_indicator(IndicatorType.VWAP)
def _vwap(candles, params):
    return {"value": vwap(candles)}
