import pytest

from app.core.exceptions import ForbiddenException, NotFoundException
from app.services.recall_policy import as_naive_utc


def test_unread_count_tracks_reads(service, alice, bob):
    first = service.send(alice.id, bob.id, "uno")
    service.send(alice.id, bob.id, "dos")

    assert service.get_unread_count(bob.id) == 2
    assert service.get_unread_count(alice.id) == 0

    assert service.mark_as_read(bob.id, first.id) is True
    assert service.get_unread_count(bob.id) == 1


def test_mark_as_read_is_a_soft_failure_when_repeated(service, clock, alice, bob):
    msg = service.send(alice.id, bob.id, "hola")

    assert service.mark_as_read(bob.id, msg.id) is True
    assert as_naive_utc(msg.read_at) == as_naive_utc(clock.now)
    assert service.mark_as_read(bob.id, msg.id) is False


def test_sender_cannot_mark_as_read(service, alice, bob):
    msg = service.send(alice.id, bob.id, "hola")

    with pytest.raises(ForbiddenException):
        service.mark_as_read(alice.id, msg.id)


def test_mark_all_as_read(service, alice, bob, carol):
    service.send(alice.id, bob.id, "a")
    service.send(carol.id, bob.id, "b")
    service.send(bob.id, alice.id, "c")

    assert service.mark_all_as_read(bob.id) == 2
    assert service.get_unread_count(bob.id) == 0
    assert service.get_unread_count(alice.id) == 1


def test_mark_thread_as_read_only_touches_that_thread(service, alice, bob, carol):
    service.send(alice.id, bob.id, "a")
    service.send(alice.id, bob.id, "b")
    service.send(carol.id, bob.id, "c")

    thread_id = service.resolve_thread_id(alice.id, bob.id)
    assert service.mark_thread_as_read(bob.id, thread_id) == 2
    assert service.get_unread_count(bob.id) == 1

    # Un tercero no puede marcar hilos ajenos
    assert service.mark_thread_as_read(carol.id, thread_id) == 0


def test_delete_hides_only_on_callers_side(service, alice, bob):
    msg = service.send(alice.id, bob.id, "hola")

    assert service.delete_message(alice.id, msg.id) is True
    with pytest.raises(NotFoundException):
        service.get_message(alice.id, msg.id)

    items, total, _, _ = service.list_outbox(alice.id)
    assert total == 0

    assert service.get_message(bob.id, msg.id).content == "hola"
    items, total, _, _ = service.list_inbox(bob.id)
    assert [m.id for m in items] == [msg.id]


def test_delete_twice_is_a_soft_failure(service, alice, bob):
    msg = service.send(alice.id, bob.id, "hola")

    assert service.delete_message(bob.id, msg.id) is True
    assert service.delete_message(bob.id, msg.id) is False


def test_delete_requires_participation(service, alice, bob, carol):
    msg = service.send(alice.id, bob.id, "hola")

    with pytest.raises(NotFoundException):
        service.delete_message(carol.id, msg.id)
    with pytest.raises(NotFoundException):
        service.delete_message(alice.id, 4242)


def test_deleted_unread_messages_leave_the_counter(service, alice, bob):
    msg = service.send(alice.id, bob.id, "hola")
    service.delete_message(bob.id, msg.id)

    assert service.get_unread_count(bob.id) == 0


def test_delete_thread_counts_both_directions(service, alice, bob):
    service.send(alice.id, bob.id, "a")
    service.send(bob.id, alice.id, "b")
    service.send(alice.id, bob.id, "c")

    thread_id = service.resolve_thread_id(alice.id, bob.id)
    assert service.delete_thread(alice.id, thread_id) == 3

    summaries, total, _, _ = service.list_conversations(alice.id)
    assert total == 0
    summaries, total, _, _ = service.list_conversations(bob.id)
    assert total == 1
