"""
Intervalos horarios de los turnos.

Las horas viajan como "HH:MM" y se comparan en minutos desde medianoche.
Un intervalo es semiabierto [start, end): dos turnos contiguos no se pisan.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, Iterable

from .config import BUSINESS_END_HOUR, BUSINESS_START_HOUR, SLOT_MINUTES
from .errors import ValidationFailed


def parse_hhmm(value: str) -> int:
    """'09:30' -> 570."""
    try:
        hh, mm = value.strip().split(":")
        hours, minutes = int(hh), int(mm)
    except (AttributeError, ValueError):
        raise ValidationFailed(f"Hora no válida: {value!r} (formato HH:MM)") from None

    if len(hh) != 2 or len(mm) != 2 or not (0 <= hours <= 23) or not (0 <= minutes <= 59):
        raise ValidationFailed(f"Hora no válida: {value!r} (formato HH:MM)")
    return hours * 60 + minutes


def format_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class Interval:
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValidationFailed("La hora de fin debe ser posterior a la hora de inicio")

    @classmethod
    def from_hhmm(cls, start: str, end: str) -> "Interval":
        return cls(parse_hhmm(start), parse_hhmm(end))

    @property
    def start_hhmm(self) -> str:
        return format_hhmm(self.start)

    @property
    def end_hhmm(self) -> str:
        return format_hhmm(self.end)


def overlaps(a: Interval, b: Interval) -> bool:
    return a.start < b.end and b.start < a.end


def candidate_slots(
    start_hour: int = BUSINESS_START_HOUR,
    end_hour: int = BUSINESS_END_HOUR,
    slot_minutes: int = SLOT_MINUTES,
) -> list[Interval]:
    """Turnos de duración fija que entran completos en el horario de atención."""
    day_start, day_end = start_hour * 60, end_hour * 60
    return [
        Interval(s, s + slot_minutes)
        for s in range(day_start, day_end - slot_minutes + 1, slot_minutes)
    ]


def available_slots(busy: Iterable[Interval], slots: Iterable[Interval] | None = None) -> list[Interval]:
    busy = list(busy)
    if slots is None:
        slots = candidate_slots()
    return [slot for slot in slots if not any(overlaps(slot, b) for b in busy)]


def find_conflict(
    candidate: Interval, others: Iterable[tuple[Hashable, Interval]]
) -> tuple[Hashable, Interval] | None:
    """Primer (clave, intervalo) que se solapa con el candidato."""
    for key, interval in others:
        if overlaps(candidate, interval):
            return key, interval
    return None
