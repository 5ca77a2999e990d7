from datetime import datetime, timedelta, timezone

import pytest

from app.core.exceptions import ForbiddenException, InvalidStateException, NotFoundException
from app.models.message import Message
from app.schemas.message import AttachmentIn
from app.services.message_presenter import present_message
from app.services.messaging_service import MessagingService
from app.services.recall_policy import RecallPolicy, as_naive_utc


def test_recall_within_window(service, clock, alice, bob):
    msg = service.send(alice.id, bob.id, "ups")
    clock.advance(minutes=2, seconds=59)

    recalled = service.recall(alice.id, msg.id)

    assert recalled.is_recalled is True
    assert as_naive_utc(recalled.recalled_at) == as_naive_utc(clock.now)
    assert recalled.content == "ups"


def test_recall_at_exactly_three_minutes_is_allowed(service, clock, alice, bob):
    msg = service.send(alice.id, bob.id, "justo a tiempo")
    clock.advance(minutes=3)

    assert service.recall(alice.id, msg.id).is_recalled is True


def test_recall_after_window_expires(service, clock, alice, bob):
    msg = service.send(alice.id, bob.id, "tarde")
    clock.advance(minutes=3, seconds=1)

    with pytest.raises(InvalidStateException) as exc_info:
        service.recall(alice.id, msg.id)
    assert exc_info.value.error_code == "RECALL_WINDOW_EXPIRED"


def test_only_sender_can_recall(service, alice, bob):
    msg = service.send(alice.id, bob.id, "mío")

    with pytest.raises(ForbiddenException):
        service.recall(bob.id, msg.id)


def test_recall_twice(service, alice, bob):
    msg = service.send(alice.id, bob.id, "una vez")
    service.recall(alice.id, msg.id)

    with pytest.raises(InvalidStateException) as exc_info:
        service.recall(alice.id, msg.id)
    assert exc_info.value.error_code == "ALREADY_RECALLED"


def test_stranger_cannot_see_or_recall(service, alice, bob, carol):
    msg = service.send(alice.id, bob.id, "privado")

    with pytest.raises(NotFoundException):
        service.recall(carol.id, msg.id)


def test_recalled_message_shows_placeholder(service, clock, alice, bob):
    files = [AttachmentIn(file_name="f.png", file_url="https://cdn/f.png", file_type="image")]
    msg = service.send(alice.id, bob.id, "texto original", attachments=files)
    service.recall(alice.id, msg.id)

    for_bob = present_message(service.get_message(bob.id, msg.id), bob.id, clock(), service.policy)
    assert for_bob.content == "Mensaje retirado"
    assert for_bob.original_content is None
    assert for_bob.attachments == []
    assert for_bob.is_recalled is True

    for_alice = present_message(service.get_message(alice.id, msg.id), alice.id, clock(), service.policy)
    assert for_alice.content == "Mensaje retirado"
    assert for_alice.original_content == "texto original"
    assert for_alice.can_recall is False


def test_can_recall_flag_follows_window(service, clock, alice, bob):
    msg = service.send(alice.id, bob.id, "hola")

    assert present_message(msg, alice.id, clock(), service.policy).can_recall is True
    assert present_message(msg, bob.id, clock(), service.policy).can_recall is False

    clock.advance(minutes=4)
    assert present_message(msg, alice.id, clock(), service.policy).can_recall is False


def test_edit_recalled_message_keeps_identity(service, clock, alice, bob):
    msg = service.send(alice.id, bob.id, "con errata")
    created_at = msg.created_at
    service.recall(alice.id, msg.id)
    clock.advance(minutes=10)

    edited = service.edit(alice.id, msg.id, "corregido")

    assert edited.id == msg.id
    assert edited.created_at == created_at
    assert edited.thread_id == msg.thread_id
    assert edited.content == "corregido"
    assert edited.is_recalled is False
    assert edited.recalled_at is None
    assert edited.is_read is False

    view = present_message(service.get_message(bob.id, msg.id), bob.id, clock(), service.policy)
    assert view.content == "corregido"


def test_edit_replaces_attachments_only_when_given(service, alice, bob):
    files = [AttachmentIn(file_name="a.txt", file_url="https://cdn/a.txt")]
    msg = service.send(alice.id, bob.id, "v1", attachments=files)

    service.recall(alice.id, msg.id)
    kept = service.edit(alice.id, msg.id, "v2")
    assert [a.file_name for a in kept.attachments] == ["a.txt"]

    service.recall(alice.id, msg.id)
    cleared = service.edit(alice.id, msg.id, "v3", attachments=[])
    assert cleared.attachments == []


def test_edit_requires_recalled_state(service, alice, bob):
    msg = service.send(alice.id, bob.id, "activo")

    with pytest.raises(InvalidStateException) as exc_info:
        service.edit(alice.id, msg.id, "cambio")
    assert exc_info.value.error_code == "NOT_RECALLED"


def test_only_sender_can_edit(service, alice, bob):
    msg = service.send(alice.id, bob.id, "activo")
    service.recall(alice.id, msg.id)

    with pytest.raises(ForbiddenException):
        service.edit(bob.id, msg.id, "cambio")


def test_window_compares_instants_across_time_zones(alice):
    # 06:00 en UTC-6 es el mismo instante que las 12:00 UTC
    created_at = datetime(2024, 1, 1, 6, 0, tzinfo=timezone(timedelta(hours=-6)))
    msg = Message(sender_id=alice.id, is_recalled=False, created_at=created_at)
    policy = RecallPolicy(180)

    assert policy.can_recall(msg, alice.id, datetime(2024, 1, 1, 12, 2, tzinfo=timezone.utc)) is True
    assert policy.can_recall(msg, alice.id, datetime(2024, 1, 1, 12, 4, tzinfo=timezone.utc)) is False


def test_window_accepts_naive_utc_read_back(alice):
    msg = Message(sender_id=alice.id, is_recalled=False, created_at=datetime(2024, 1, 1, 12, 0))
    policy = RecallPolicy(180)

    assert policy.within_window(msg, datetime(2024, 1, 1, 12, 3, tzinfo=timezone.utc)) is True
    assert policy.within_window(msg, datetime(2024, 1, 1, 12, 3, 1, tzinfo=timezone.utc)) is False


def test_default_clock_is_timezone_aware(db):
    now = MessagingService(db).clock()

    assert now.tzinfo is not None
    assert now.utcoffset() == timedelta(0)
