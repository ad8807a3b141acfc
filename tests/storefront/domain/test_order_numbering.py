import re
from datetime import UTC, datetime

import pytest

from storefront.exceptions import InvariantViolationError
from storefront.order.numbering import candidate_number, generate_order_number


def test_number_format():
    number = candidate_number("PC", datetime(2026, 2, 3, tzinfo=UTC))
    assert re.fullmatch(r"PC-20260203-[0-9A-F]{6}", number)


def test_taken_numbers_are_skipped():
    taken = set()

    def is_taken(number):
        if not taken:
            taken.add(number)
            return True
        return number in taken

    number = generate_order_number("PC", is_taken)
    assert number not in taken


def test_gives_up_after_repeated_collisions():
    with pytest.raises(InvariantViolationError):
        generate_order_number("PC", lambda number: True)
