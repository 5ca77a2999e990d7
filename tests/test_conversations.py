import pytest

from app.core.exceptions import NotFoundException, ValidationException
from app.services.message_presenter import present_conversation


def test_one_conversation_per_partner_newest_first(service, clock, alice, bob, carol):
    service.send(alice.id, bob.id, "hola bob")
    clock.advance(seconds=1)
    service.send(carol.id, alice.id, "hola alice")
    clock.advance(seconds=1)
    last = service.send(bob.id, alice.id, "qué tal")

    summaries, total, page, limit = service.list_conversations(alice.id)

    assert total == 2
    assert (page, limit) == (1, 20)
    assert [s.partner_id for s in summaries] == [bob.id, carol.id]

    with_bob = summaries[0]
    assert with_bob.last_message.id == last.id
    assert with_bob.unread_count == 1
    assert with_bob.total_messages == 2
    assert summaries[1].unread_count == 1


def test_conversation_ties_are_broken_by_id(service, alice, bob, carol):
    service.send(bob.id, alice.id, "primero")
    service.send(carol.id, alice.id, "segundo")

    summaries, _, _, _ = service.list_conversations(alice.id)
    assert [s.partner_id for s in summaries] == [carol.id, bob.id]


def test_conversation_preview_respects_recall(service, alice, bob):
    msg = service.send(alice.id, bob.id, "secreto")
    service.recall(alice.id, msg.id)

    summaries, _, _, _ = service.list_conversations(bob.id)
    view = present_conversation(summaries[0], alice)

    assert view.last_message.content == "Mensaje retirado"
    assert view.partner_username == "alice"


def test_last_message_skips_messages_deleted_by_viewer(service, clock, alice, bob):
    first = service.send(alice.id, bob.id, "antiguo")
    clock.advance(seconds=5)
    newest = service.send(bob.id, alice.id, "reciente")
    service.delete_message(alice.id, newest.id)

    summaries, _, _, _ = service.list_conversations(alice.id)
    assert summaries[0].last_message.id == first.id
    assert summaries[0].total_messages == 1


def test_conversation_pagination(service, clock, user_factory, alice):
    partners = [user_factory(f"user{i}") for i in range(5)]
    for partner in partners:
        service.send(partner.id, alice.id, "hola")
        clock.advance(seconds=1)

    summaries, total, page, limit = service.list_conversations(alice.id, page=2, limit=2)

    assert total == 5
    assert (page, limit) == (2, 2)
    assert [s.partner_id for s in summaries] == [partners[2].id, partners[1].id]


def test_history_pages_are_chronological(service, clock, alice, bob):
    sent = []
    for i in range(5):
        sender, recipient = (alice, bob) if i % 2 == 0 else (bob, alice)
        sent.append(service.send(sender.id, recipient.id, f"m{i}"))
        clock.advance(seconds=1)

    partner, items, total, _, _ = service.get_conversation_history(alice.id, bob.id, page=1, limit=3)
    assert partner.id == bob.id
    assert total == 5
    assert [m.content for m in items] == ["m2", "m3", "m4"]

    _, older, _, _, _ = service.get_conversation_history(alice.id, bob.id, page=2, limit=3)
    assert [m.content for m in older] == ["m0", "m1"]


def test_history_with_yourself_is_invalid(service, alice):
    with pytest.raises(ValidationException):
        service.get_conversation_history(alice.id, alice.id)


def test_history_with_deleted_partner_stays_reachable(service, db, clock, alice, bob):
    service.send(bob.id, alice.id, "antes de irme")
    bob.deleted_at = clock()
    db.commit()

    summaries, total, _, _ = service.list_conversations(alice.id)
    assert total == 1
    assert summaries[0].partner_id == bob.id

    partner, items, total, _, _ = service.get_conversation_history(alice.id, bob.id)
    assert partner.id == bob.id
    assert total == 1
    assert items[0].content == "antes de irme"


def test_history_with_unknown_user(service, alice):
    with pytest.raises(NotFoundException):
        service.get_conversation_history(alice.id, 999)


@pytest.mark.parametrize("limit,expected", [(0, 20), (-3, 1), (500, 50), (None, 20)])
def test_page_size_is_clamped(service, alice, limit, expected):
    _, _, page, clamped = service.list_inbox(alice.id, page=0, limit=limit)
    assert page == 1
    assert clamped == expected


def test_inbox_can_be_scoped_to_a_thread(service, alice, bob, carol):
    service.send(alice.id, bob.id, "de alice")
    service.send(carol.id, bob.id, "de carol")

    thread_id = service.resolve_thread_id(alice.id, bob.id)
    items, total, _, _ = service.list_inbox(bob.id, thread_id=thread_id)

    assert total == 1
    assert items[0].content == "de alice"
