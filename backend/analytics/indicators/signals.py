"""Buy / sell / neutral classification of oscillator series."""

from typing import Literal, Sequence

from analytics.models.config import IndicatorType

Signal = Literal["buy", "sell", "neutral"]

# (buy below, sell above) per band-style oscillator
_BANDS: dict[str, tuple[float, float]] = {
    IndicatorType.RSI.value: (30.0, 70.0),
    IndicatorType.STOCHASTIC.value: (20.0, 80.0),
    IndicatorType.WILLIAMS.value: (-80.0, -20.0),
    IndicatorType.MFI.value: (20.0, 80.0),
}


def generate_signals(
    indicator_type: IndicatorType | str,
    values: Sequence[float | None],
    oversold: float | None = None,
    overbought: float | None = None,
) -> list[Signal]:
    """
    Classify each value of an indicator series.

    RSI, Stochastic, Williams %R and MFI signal ``buy`` below their
    oversold band and ``sell`` above their overbought band; the RSI bands
    can be overridden with *oversold* / *overbought* (an explicit 0 is
    honoured). MACD signals on zero-line crossings. Missing values and
    unrecognized indicator types are ``neutral``.

    Args:
        indicator_type: Indicator the values come from
        values: Indicator series (None for warm-up)
        oversold: RSI buy threshold override
        overbought: RSI sell threshold override

    Returns:
        One signal per input value
    """
    kind = indicator_type.value if isinstance(indicator_type, IndicatorType) else indicator_type

    if kind == IndicatorType.MACD.value:
        return _zero_crossings(values)

    band = _BANDS.get(kind)
    if band is None:
        return ["neutral"] * len(values)

    low, high = band
    if kind == IndicatorType.RSI.value:
        if oversold is not None:
            low = oversold
        if overbought is not None:
            high = overbought

    signals: list[Signal] = []
    for value in values:
        if value is None:
            signals.append("neutral")
        elif value < low:
            signals.append("buy")
        elif value > high:
            signals.append("sell")
        else:
            signals.append("neutral")
    return signals


def _zero_crossings(values: Sequence[float | None]) -> list[Signal]:
    signals: list[Signal] = []
    prev: float | None = None
    for value in values:
        signal: Signal = "neutral"
        if value is not None and prev is not None:
            if value > 0 and prev < 0:
                signal = "buy"
            elif value < 0 and prev > 0:
                signal = "sell"
        signals.append(signal)
        prev = value
    return signals
