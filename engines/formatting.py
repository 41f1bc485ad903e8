"""
Mental Health ROI — Number Formatting
Swedish display conventions: non-breaking space as thousands separator,
decimal comma, amounts in kronor.
"""
import math, re
from decimal import Decimal, ROUND_HALF_UP

GROUP_SEP = '\u00a0'
DECIMAL_SEP = ','

DECIMAL_COMMA_WARNING = 'Use a point (.) instead of a comma (,) for decimals'
INVALID_NUMBER_WARNING = 'Invalid numeric value'

_LEADING_NUMBER = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?')


def _group(digits):
    out = []
    while len(digits) > 3:
        out.insert(0, digits[-3:])
        digits = digits[:-3]
    out.insert(0, digits)
    return GROUP_SEP.join(out)


def format_number(n, decimals=0):
    if n is None or isinstance(n, bool):
        return '0'
    try:
        value = float(n)
    except (TypeError, ValueError):
        return '0'
    if math.isnan(value) or math.isinf(value):
        return '0'

    q = Decimal(1).scaleb(-decimals)
    d = Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP)
    sign = '-' if d < 0 else ''
    text = f"{abs(d):f}"
    whole, _, frac = text.partition('.')
    out = sign + _group(whole)
    if decimals > 0:
        out += DECIMAL_SEP + frac
    return '0' if out in ('-0', '') else out


def format_currency(amount):
    return f"{format_number(amount)} kr"


def format_percentage(percentage):
    return f"{format_number(percentage, 1)}%"


def parse_number_input(value, allow_decimals=True):
    """Parse what the user typed into a number field.

    Returns (formatted, raw, warning). Spaces are accepted as thousands
    separators; a decimal comma is accepted with a warning. Blank input
    gives ('', None, None) and non-numeric input gives ('', None, warning).
    """
    if value is None or value == '':
        return '', None, None
    if isinstance(value, bool):
        return '', None, INVALID_NUMBER_WARNING

    text = repr(value) if isinstance(value, float) else str(value)
    clean = re.sub(r'\s', '', text)
    warning = None
    if ',' in clean:
        warning = DECIMAL_COMMA_WARNING
        clean = clean.replace(',', '.', 1)

    m = _LEADING_NUMBER.match(clean)
    if not m:
        return '', None, INVALID_NUMBER_WARNING
    number = float(m.group(0))
    if math.isnan(number) or math.isinf(number):
        return '', None, INVALID_NUMBER_WARNING

    raw = number if allow_decimals else int(Decimal(str(number)).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    if isinstance(raw, float) and raw.is_integer() and '.' not in clean:
        raw = int(raw)

    if allow_decimals and '.' in clean:
        whole, _, frac = clean.partition('.')
        lead = _LEADING_NUMBER.match(whole)
        formatted = format_number(int(float(lead.group(0)))) if lead else '0'
        formatted += '.' + frac
    else:
        formatted = format_number(raw)
    return formatted, raw, warning
