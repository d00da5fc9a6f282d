# erp_otica/utils/dates.py

import calendar
from datetime import date, datetime, time, timezone

# Abreviações usadas nos rótulos dos gráficos
MONTH_LABELS = ["Jan", "Fev", "Mar", "Abr", "Mai", "Jun", "Jul", "Ago", "Set", "Out", "Nov", "Dez"]

def to_naive_utc(value: datetime | date | None) -> datetime | None:
    """Normaliza para datetime UTC sem tzinfo, o formato que o pymongo devolve."""
    if value is None:
        return None
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

def start_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.min)

def start_of_month(value: datetime) -> datetime:
    return datetime(value.year, value.month, 1)

def add_months(value: datetime, months: int) -> datetime:
    """Soma meses mantendo o dia, limitado ao último dia do mês de destino."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)

def month_label(year: int, month: int, short_year: bool = False) -> str:
    """(2025, 3) -> `Mar/2025`, ou `Mar/25` com short_year."""
    year_str = str(year)[-2:] if short_year else str(year)
    return f"{MONTH_LABELS[month - 1]}/{year_str}"
