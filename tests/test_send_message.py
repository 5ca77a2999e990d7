from datetime import datetime, timezone

import pytest

from app.core.exceptions import ForbiddenException, NotFoundException, ValidationException
from app.models.message import Message
from app.schemas.message import AttachmentIn
from app.services.recall_policy import as_naive_utc


def test_send_persists_message_with_canonical_thread(service, alice, bob, clock):
    msg = service.send(alice.id, bob.id, "  Hola Bob  ", subject="Saludo")

    assert msg.id is not None
    assert msg.thread_id == f"{alice.id}-{bob.id}"
    assert msg.content == "Hola Bob"
    assert msg.subject == "Saludo"
    assert msg.is_read is False
    assert msg.is_recalled is False
    assert msg.sender_deleted is False
    assert msg.recipient_deleted is False
    assert as_naive_utc(msg.created_at) == as_naive_utc(clock.now)


def test_send_notifies_recipient_with_truncated_preview(service, notifier, alice, bob):
    msg = service.send(alice.id, bob.id, "x" * 150)

    assert len(notifier.events) == 1
    event = notifier.events[0]
    assert event.recipient_id == bob.id
    assert event.sender_id == alice.id
    assert event.message_id == msg.id
    assert event.thread_id == msg.thread_id
    assert event.message_preview == "x" * 100


def test_content_length_boundaries(service, db, alice, bob):
    service.send(alice.id, bob.id, "a")
    service.send(alice.id, bob.id, "a" * 2000)

    with pytest.raises(ValidationException):
        service.send(alice.id, bob.id, "a" * 2001)
    with pytest.raises(ValidationException):
        service.send(alice.id, bob.id, "   ")

    assert db.query(Message).count() == 2


def test_subject_length_boundaries(service, alice, bob):
    service.send(alice.id, bob.id, "hola", subject="s" * 100)

    with pytest.raises(ValidationException):
        service.send(alice.id, bob.id, "hola", subject="s" * 101)
    with pytest.raises(ValidationException):
        service.send(alice.id, bob.id, "hola", subject="  ")


def test_cannot_message_yourself(service, db, alice):
    with pytest.raises(ValidationException):
        service.send(alice.id, alice.id, "hola")
    assert db.query(Message).count() == 0


@pytest.mark.parametrize("recipient_id", [0, -4])
def test_invalid_recipient_id(service, alice, recipient_id):
    with pytest.raises(ValidationException):
        service.send(alice.id, recipient_id, "hola")


def test_missing_recipient(service, notifier, alice):
    with pytest.raises(NotFoundException):
        service.send(alice.id, 999, "hola")
    assert notifier.events == []


def test_inactive_or_deleted_recipient(service, db, alice, user_factory):
    banned = user_factory("banned", status="banned")
    gone = user_factory("gone")
    gone.deleted_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
    db.commit()

    with pytest.raises(NotFoundException):
        service.send(alice.id, banned.id, "hola")
    with pytest.raises(NotFoundException):
        service.send(alice.id, gone.id, "hola")


def test_attachments_are_stored_in_order(service, alice, bob):
    files = [
        AttachmentIn(file_name="a.png", file_url="https://cdn/a.png", file_type="image", file_size=10),
        AttachmentIn(file_name="b.pdf", file_url="https://cdn/b.pdf", file_size=20),
    ]
    msg = service.send(alice.id, bob.id, "mira", attachments=files)

    assert [a.file_name for a in msg.attachments] == ["a.png", "b.pdf"]
    assert msg.attachments[0].file_type == "image"


def test_too_many_attachments(service, alice, bob):
    files = [
        AttachmentIn(file_name=f"{i}.txt", file_url=f"https://cdn/{i}.txt")
        for i in range(11)
    ]
    with pytest.raises(ValidationException):
        service.send(alice.id, bob.id, "demasiados", attachments=files)


def test_reply_must_target_same_thread(service, alice, bob, carol):
    original = service.send(bob.id, alice.id, "pregunta")
    other = service.send(carol.id, alice.id, "otra cosa")

    reply = service.send(alice.id, bob.id, "respuesta", reply_to_id=original.id)
    assert reply.reply_to_id == original.id

    with pytest.raises(ValidationException):
        service.send(alice.id, bob.id, "mal hilo", reply_to_id=other.id)
    with pytest.raises(ValidationException):
        service.send(alice.id, bob.id, "no existe", reply_to_id=12345)


def test_stranger_block_only_applies_to_new_threads(service, alice, bob, carol, block_strangers):
    service.send(bob.id, alice.id, "ya nos conocemos")
    block_strangers(alice)

    with pytest.raises(ForbiddenException):
        service.send(carol.id, alice.id, "hola desconocida")

    msg = service.send(bob.id, alice.id, "sigo escribiendo")
    assert msg.id is not None


def test_notifier_failure_does_not_fail_send(db, clock, alice, bob):
    from app.services.messaging_service import MessagingService

    def broken(event):
        raise RuntimeError("notifier down")

    service = MessagingService(db, notifier=broken, clock=clock)
    msg = service.send(alice.id, bob.id, "hola")

    assert db.query(Message).filter(Message.id == msg.id).count() == 1
    assert service.get_unread_count(bob.id) == 1
