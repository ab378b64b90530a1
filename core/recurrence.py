"""
Geração de ocorrências de agendamentos recorrentes.

Função pura: recebe o início da série e a regra, devolve as datas das
ocorrências adicionais (o próprio início nunca é incluído). Persistência e
vínculo com o agendamento "pai" ficam com quem chama.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

DEFAULT_MAX_OCCURRENCES = 12
HARD_MAX_OCCURRENCES = 104


class RecurrenceConfigError(ValueError):
    """Regra de recorrência inválida (frequência, intervalo, limites)."""


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, value) -> "Frequency":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise RecurrenceConfigError(f"Frequência inválida: {value!r}")


def _positive_int(name: str, value) -> Optional[int]:
    if value in (None, ""):
        return None
    if isinstance(value, bool):
        raise RecurrenceConfigError(f"{name} deve ser um inteiro positivo.")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise RecurrenceConfigError(f"{name} deve ser um inteiro positivo.")
    if number < 1:
        raise RecurrenceConfigError(f"{name} deve ser um inteiro positivo.")
    return number


def _parse_end_date(value) -> Optional[Union[dt.date, dt.datetime]]:
    if value in (None, ""):
        return None
    if isinstance(value, (dt.date, dt.datetime)):
        return value
    text = str(value)
    try:
        if len(text) == 10:
            return dt.date.fromisoformat(text)
        return isoparse(text)
    except ValueError:
        raise RecurrenceConfigError(f"endDate inválida: {value!r}")


@dataclass(frozen=True)
class RecurrenceRule:
    frequency: Frequency
    interval: int = 1
    day_of_month: Optional[int] = None
    end_date: Optional[Union[dt.date, dt.datetime]] = None
    occurrences: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "frequency", Frequency.parse(self.frequency))
        if self.interval is None or int(self.interval) < 1:
            raise RecurrenceConfigError("interval deve ser um inteiro positivo.")
        if self.day_of_month is not None and not 1 <= int(self.day_of_month) <= 31:
            raise RecurrenceConfigError("dayOfMonth deve estar entre 1 e 31.")
        if self.occurrences is not None and int(self.occurrences) < 1:
            raise RecurrenceConfigError("occurrences deve ser um inteiro positivo.")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecurrenceRule":
        """Constrói a regra a partir do formato da API (camelCase)."""
        if not isinstance(data, dict):
            raise RecurrenceConfigError("recurrenceRule deve ser um objeto.")
        if not data.get("frequency"):
            raise RecurrenceConfigError("frequency é obrigatório.")
        return cls(
            frequency=Frequency.parse(data["frequency"]),
            interval=_positive_int("interval", data.get("interval")) or 1,
            day_of_month=_positive_int("dayOfMonth", data.get("dayOfMonth")),
            end_date=_parse_end_date(data.get("endDate")),
            occurrences=_positive_int("occurrences", data.get("occurrences")),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "frequency": self.frequency.value,
            "interval": self.interval,
        }
        if self.day_of_month is not None:
            data["dayOfMonth"] = self.day_of_month
        if self.end_date is not None:
            data["endDate"] = self.end_date.isoformat()
        if self.occurrences is not None:
            data["occurrences"] = self.occurrences
        return data

    def nth(self, start: dt.datetime, k: int) -> dt.datetime:
        """k-ésima ocorrência contada a partir de `start` (k=0 é o próprio start)."""
        if self.frequency is Frequency.DAILY:
            return start + dt.timedelta(days=k * self.interval)
        if self.frequency is Frequency.WEEKLY:
            return start + dt.timedelta(days=7 * k * self.interval)
        if self.frequency is Frequency.BIWEEKLY:
            # Sempre 14 dias; interval é ignorado
            return start + dt.timedelta(days=14 * k)
        if self.frequency is Frequency.MONTHLY:
            # Sempre a partir do start: um mês curto não altera os seguintes.
            # relativedelta limita ao último dia do mês (31 -> 30/28/29)
            day = self.day_of_month or start.day
            return start + relativedelta(months=k * self.interval, day=day)
        raise RecurrenceConfigError(f"Frequência inválida: {self.frequency!r}")

    def is_past_end(self, cursor: dt.datetime) -> bool:
        if self.end_date is None:
            return False
        if isinstance(self.end_date, dt.datetime):
            end = self.end_date
            if end.tzinfo is None and cursor.tzinfo is not None:
                end = end.replace(tzinfo=cursor.tzinfo)
            elif end.tzinfo is not None and cursor.tzinfo is None:
                end = end.replace(tzinfo=None)
            return cursor > end
        return cursor.date() > self.end_date


def effective_cap(
    rule: RecurrenceRule,
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
    hard_limit: int = HARD_MAX_OCCURRENCES,
) -> int:
    if rule.occurrences is not None:
        cap = rule.occurrences
    elif rule.end_date is None:
        cap = max_occurrences
    else:
        cap = hard_limit
    return max(0, min(cap, hard_limit))


def generate_recurring_dates(
    start: dt.datetime,
    rule: Union[RecurrenceRule, Dict[str, Any]],
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
    hard_limit: int = HARD_MAX_OCCURRENCES,
) -> List[dt.datetime]:
    """
    Datas das ocorrências seguintes a `start`, em ordem cronológica.

    `occurrences` define quantas datas gerar; `end_date` apenas encerra antes
    (inclusive). Sem nenhum dos dois, `max_occurrences` limita a série.
    `hard_limit` vale sempre.
    """
    if isinstance(rule, dict):
        rule = RecurrenceRule.from_dict(rule)

    cap = effective_cap(rule, max_occurrences, hard_limit)
    dates: List[dt.datetime] = []
    k = 0
    while len(dates) < cap:
        k += 1
        cursor = rule.nth(start, k)
        if rule.is_past_end(cursor):
            break
        if cursor != start:
            dates.append(cursor)
    return dates
