"""Operator-slot model: flattening shifts into one row per slot."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Tuple

from .models import Shift, SlotOverride, SlotRow

SlotKey = Tuple[str, int]

# Legacy rows carry a placeholder name such as "Da assegnare" instead of an empty id.
UNASSIGNED_MARKER = "assegna"


def looks_unassigned(name: Optional[str]) -> bool:
    """Return True when a display name is blank or an "unassigned" placeholder."""

    if name is None:
        return True
    normalized = name.strip().lower()
    return not normalized or UNASSIGNED_MARKER in normalized


def is_assigned(operator_id: Optional[str], display_name: Optional[str] = None) -> bool:
    if not operator_id or not operator_id.strip():
        return False
    if display_name is not None and looks_unassigned(display_name):
        return False
    return True


def surname_first(name: str) -> str:
    """Turn "Firstname Lastname" into "Lastname Firstname"."""

    parts = name.split()
    if len(parts) < 2:
        return name
    return f"{parts[-1]} {' '.join(parts[:-1])}"


def slot_rows(
    shift: Shift,
    operator_names: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[SlotKey, SlotOverride]] = None,
) -> List[SlotRow]:
    """Return one row per entry of ``shift.operator_ids`` in slot order.

    ``operator_names`` maps operator ids to their full names; a known name is
    rendered surname first, an unknown id is echoed back as its own name.
    ``overrides`` maps ``(shift_id, slot_index)`` to per-slot times and notes.
    """

    names = operator_names or {}
    rows: List[SlotRow] = []
    for index, operator_id in enumerate(shift.operator_ids):
        operator_id = operator_id or ""
        full_name = names.get(operator_id) if operator_id else None
        # an unknown id is its own display name, placeholders included
        assigned = is_assigned(operator_id, operator_id if full_name is None else full_name)
        override = (overrides or {}).get((shift.id, index))
        if not assigned:
            display = ""
        elif full_name is None:
            display = operator_id
        else:
            display = surname_first(full_name)
        rows.append(
            SlotRow(
                shift=shift,
                slot_index=index,
                operator_id=operator_id,
                is_assigned=assigned,
                operator_name=display,
                override=override,
            )
        )
    return rows


def flatten_shifts(
    shifts: List[Shift],
    operator_names: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[SlotKey, SlotOverride]] = None,
) -> List[SlotRow]:
    rows: List[SlotRow] = []
    for shift in shifts:
        rows.extend(slot_rows(shift, operator_names, overrides))
    return rows


def occupied_slot_count(shift: Shift, operator_names: Optional[Mapping[str, str]] = None) -> int:
    return sum(1 for row in slot_rows(shift, operator_names) if row.is_assigned)


def operator_names_by_id(operators) -> Dict[str, str]:
    return {operator.id: operator.name for operator in operators}


__all__ = [
    "UNASSIGNED_MARKER",
    "looks_unassigned",
    "is_assigned",
    "surname_first",
    "slot_rows",
    "flatten_shifts",
    "occupied_slot_count",
    "operator_names_by_id",
]
