import pytest

from app.core.exceptions import ValidationException
from app.services.thread_service import resolve_thread_id, thread_participants


def test_thread_id_is_order_independent():
    assert resolve_thread_id(7, 3) == "3-7"
    assert resolve_thread_id(3, 7) == "3-7"


def test_thread_id_sorts_numerically_not_lexically():
    assert resolve_thread_id(10, 9) == "9-10"


@pytest.mark.parametrize("a,b", [(5, 5), (0, 3), (-1, 2), (True, 2), ("1", 2)])
def test_invalid_pairs_are_rejected(a, b):
    with pytest.raises(ValidationException):
        resolve_thread_id(a, b)


def test_thread_participants_parses_canonical_ids():
    assert thread_participants("3-7") == (3, 7)


@pytest.mark.parametrize("thread_id", ["7-3", "3", "a-b", "3-3", "3-7-9"])
def test_thread_participants_rejects_malformed_ids(thread_id):
    with pytest.raises(ValidationException):
        thread_participants(thread_id)
