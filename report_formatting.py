import pandas as pd


def fmt_dollar_clean(x, decimals=0):
    if x is None or pd.isna(x):
        return "N/A"
    sign = "-" if x < 0 else ""
    return f"{sign}${abs(x):,.{decimals}f}"


def fmt_pct_clean(x, decimals=1):
    """Percent already expressed in 0-100 units."""
    if x is None or pd.isna(x):
        return "N/A"
    return f"{x:.{decimals}f}%"
