"""Tests for app.services.support."""
import pytest

from app.errors import NotFoundError, ValidationError
from app.models import SupportMessage
from app.services import support


def _ticket(db_session, **overrides):
    fields = dict(name="Noa", email="noa@salon.test", message="Need help", source_page="/contact")
    fields.update(overrides)
    return support.create_ticket(db_session, **fields)


class TestCreateTicket:

    def test_creates_ticket_and_first_client_message(self, db_session):
        ticket = _ticket(db_session)
        assert ticket.status == "new"
        assert ticket.last_message == "Need help"
        [msg] = db_session.query(SupportMessage).all()
        assert msg.ticket_id == ticket.id
        assert msg.sender_type == "client"
        assert msg.sender_name == "Noa"

    def test_links_known_user_by_email(self, db_session, make_user):
        user = make_user(email="noa@salon.test")
        assert _ticket(db_session).user_id == user.id

    def test_links_known_user_by_phone(self, db_session, make_user):
        user = make_user(phone="0501234567")
        assert _ticket(db_session, email=None, phone="0501234567").user_id == user.id

    def test_requires_contact(self, db_session):
        with pytest.raises(ValidationError):
            _ticket(db_session, email=None, phone=None)


class TestAddMessage:

    def test_truncates_last_message(self, db_session):
        ticket = _ticket(db_session)
        support.add_message(db_session, ticket.id, sender_type="client", message="y" * 400)
        db_session.refresh(ticket)
        assert ticket.last_message == "y" * 255

    def test_admin_reply_moves_new_to_in_progress(self, db_session):
        ticket = _ticket(db_session)
        support.add_message(db_session, ticket.id, sender_type="admin", message="On it")
        db_session.refresh(ticket)
        assert ticket.status == "in_progress"

    def test_admin_reply_keeps_resolved(self, db_session):
        ticket = _ticket(db_session)
        support.update_ticket(db_session, ticket.id, status="resolved")
        support.add_message(db_session, ticket.id, sender_type="admin", message="Reopening?")
        db_session.refresh(ticket)
        assert ticket.status == "resolved"

    def test_client_message_keeps_status(self, db_session):
        ticket = _ticket(db_session)
        support.add_message(db_session, ticket.id, sender_type="client", message="Any news?")
        db_session.refresh(ticket)
        assert ticket.status == "new"

    def test_bad_sender_type(self, db_session):
        ticket = _ticket(db_session)
        with pytest.raises(ValidationError):
            support.add_message(db_session, ticket.id, sender_type="bot", message="beep")

    def test_unknown_ticket(self, db_session):
        with pytest.raises(NotFoundError):
            support.add_message(db_session, "missing", sender_type="client", message="hi")


class TestListAndUpdate:

    def test_list_includes_message_count(self, db_session):
        busy = _ticket(db_session, name="Busy")
        support.add_message(db_session, busy.id, sender_type="client", message="again")
        _ticket(db_session, name="Quiet", email="quiet@salon.test")

        rows, total = support.list_tickets(db_session)
        counts = {ticket.name: count for ticket, count in rows}
        assert total == 2
        assert counts == {"Busy": 2, "Quiet": 1}

    def test_list_filters_by_status(self, db_session):
        ticket = _ticket(db_session)
        _ticket(db_session, email="other@salon.test")
        support.update_ticket(db_session, ticket.id, status="closed")
        rows, total = support.list_tickets(db_session, status="closed")
        assert total == 1
        assert rows[0][0].id == ticket.id

    def test_update_fields(self, db_session, make_user):
        agent = make_user(role="staff")
        ticket = _ticket(db_session)
        updated = support.update_ticket(
            db_session, ticket.id,
            tags=["vip", "color"], pipeline_stage="qualified", assigned_to=agent.id,
        )
        assert updated.tags == ["vip", "color"]
        assert updated.pipeline_stage == "qualified"
        assert updated.assigned_to == agent.id

    def test_update_rejects_unknown_status(self, db_session):
        ticket = _ticket(db_session)
        with pytest.raises(ValidationError):
            support.update_ticket(db_session, ticket.id, status="archived")

    def test_thread_is_chronological(self, db_session):
        ticket = _ticket(db_session)
        support.add_message(db_session, ticket.id, sender_type="admin", message="reply")
        _, messages = support.get_thread(db_session, ticket.id)
        assert [m.message for m in messages] == ["Need help", "reply"]
