from __future__ import annotations

from functools import cmp_to_key
from typing import TYPE_CHECKING, List, Sequence

from app.utils.aggregation import parse_date

if TYPE_CHECKING:
    from app.models.transaction import Transaction


def append_transaction(existing: Sequence["Transaction"], incoming: "Transaction") -> List["Transaction"]:
    """
    Put ``incoming`` in front of ``existing`` and return the canonical order:
    newest date first, dated entries before undated ones, and position in the
    combined list as the tie-break. Neither input is modified.
    """
    raw = [incoming, *existing]
    keyed = [(index, parse_date(tx.date), tx) for index, tx in enumerate(raw)]

    def compare(a, b) -> int:
        a_index, a_date, _ = a
        b_index, b_date, _ = b
        if a_date is not None and b_date is not None and a_date != b_date:
            return -1 if a_date > b_date else 1
        if a_date is not None and b_date is None:
            return -1
        if a_date is None and b_date is not None:
            return 1
        return a_index - b_index

    return [tx for _, _, tx in sorted(keyed, key=cmp_to_key(compare))]
