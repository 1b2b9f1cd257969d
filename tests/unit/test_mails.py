from datetime import timedelta

import pytest

from simpleice.core.errors import (
    DuplicateNameError,
    InvalidStateError,
    InvalidTriggerError,
    NotActiveError,
    NotFoundError,
    ValidationError,
)
from simpleice.core.models import Status
from simpleice.mails import (
    activate_mail,
    create_mail,
    deactivate_mail,
    edit_mail,
    get_mail,
    mark_sent,
    remove_mail,
)


@pytest.fixture
def mails(now):
    mails = []
    create_mail(mails, "bank", "sister@example.com", "accounts", "the pin is in the drawer", now=now)
    return mails


def test_create_starts_as_draft(mails, now):
    mail = get_mail(mails, "bank")
    assert mail.status == Status.DRAFT
    assert mail.trigger_at is None
    assert mail.sent_at is None
    assert mail.created_at == now
    assert len(mail.id) == 36


def test_create_assigns_unique_ids(mails, now):
    other = create_mail(mails, "house", "brother@example.com", now=now)
    assert other.id != get_mail(mails, "bank").id


def test_create_duplicate_name_fails_and_keeps_first(mails, now):
    with pytest.raises(DuplicateNameError):
        create_mail(mails, "bank", "someone@else.com", "other", "other body", now=now)
    assert len(mails) == 1
    assert mails[0].recipient == "sister@example.com"


def test_create_blank_name_fails(now):
    with pytest.raises(ValidationError):
        create_mail([], "   ", "a@b.com", now=now)


def test_create_bad_recipient_fails(now):
    with pytest.raises(ValidationError):
        create_mail([], "x", "not-an-address", now=now)


def test_create_normalizes_recipient_list(now):
    mail = create_mail([], "x", " a@b.com,c@d.org ,", now=now)
    assert mail.recipient == "a@b.com, c@d.org"


def test_activate_future_sets_active(mails, now, future):
    mail = activate_mail(mails, "bank", future, now=now)
    assert mail.status == Status.ACTIVE
    assert mail.trigger_at == future
    assert get_mail(mails, "bank").status == Status.ACTIVE


@pytest.mark.parametrize("offset", [timedelta(0), timedelta(seconds=-1), timedelta(days=-30)])
def test_activate_past_or_present_fails(mails, now, offset):
    with pytest.raises(InvalidTriggerError):
        activate_mail(mails, "bank", now + offset, now=now)
    assert get_mail(mails, "bank").status == Status.DRAFT


def test_activate_again_replaces_trigger(mails, now, future):
    activate_mail(mails, "bank", future, now=now)
    later = future + timedelta(days=1)
    mail = activate_mail(mails, "bank", later, now=now)
    assert mail.trigger_at == later


def test_activate_missing_fails(mails, now, future):
    with pytest.raises(NotFoundError):
        activate_mail(mails, "nope", future, now=now)


def test_activate_sent_fails(mails, now, future):
    activate_mail(mails, "bank", future, now=now)
    mark_sent(mails, "bank", future)
    with pytest.raises(InvalidStateError):
        activate_mail(mails, "bank", future + timedelta(days=1), now=now)


def test_deactivate_active_clears_trigger(mails, now, future):
    activate_mail(mails, "bank", future, now=now)
    mail = deactivate_mail(mails, "bank")
    assert mail.status == Status.DRAFT
    assert mail.trigger_at is None


def test_deactivate_draft_fails(mails):
    with pytest.raises(NotActiveError):
        deactivate_mail(mails, "bank")


def test_deactivate_sent_fails(mails, now, future):
    activate_mail(mails, "bank", future, now=now)
    mark_sent(mails, "bank", future)
    with pytest.raises(NotActiveError):
        deactivate_mail(mails, "bank")


def test_not_active_is_invalid_state():
    assert issubclass(NotActiveError, InvalidStateError)


def test_edit_updates_only_supplied_fields(mails):
    mail = edit_mail(mails, "bank", body="new body")
    assert mail.body == "new body"
    assert mail.subject == "accounts"
    assert mail.recipient == "sister@example.com"


def test_edit_keeps_active_status_and_trigger(mails, now, future):
    activate_mail(mails, "bank", future, now=now)
    mail = edit_mail(mails, "bank", subject="urgent")
    assert mail.status == Status.ACTIVE
    assert mail.trigger_at == future
    assert mail.subject == "urgent"


def test_edit_rename(mails):
    edit_mail(mails, "bank", new_name="bank accounts")
    assert get_mail(mails, "bank accounts").body == "the pin is in the drawer"
    with pytest.raises(NotFoundError):
        get_mail(mails, "bank")


def test_edit_rename_collision_fails(mails, now):
    create_mail(mails, "house", "brother@example.com", now=now)
    with pytest.raises(DuplicateNameError):
        edit_mail(mails, "house", new_name="bank")


def test_edit_sent_fails(mails, now, future):
    activate_mail(mails, "bank", future, now=now)
    mark_sent(mails, "bank", future)
    with pytest.raises(InvalidStateError):
        edit_mail(mails, "bank", body="too late")


def test_edit_missing_fails(mails):
    with pytest.raises(NotFoundError):
        edit_mail(mails, "nope", body="x")


@pytest.mark.parametrize("state", ["draft", "active", "sent"])
def test_remove_any_status(mails, now, future, state):
    if state in ("active", "sent"):
        activate_mail(mails, "bank", future, now=now)
    if state == "sent":
        mark_sent(mails, "bank", future)
    removed = remove_mail(mails, "bank")
    assert removed.name == "bank"
    assert mails == []


def test_remove_missing_fails(mails):
    with pytest.raises(NotFoundError):
        remove_mail(mails, "nope")


def test_mark_sent_records_time(mails, now, future):
    activate_mail(mails, "bank", future, now=now)
    mail = mark_sent(mails, "bank", future)
    assert mail.status == Status.SENT
    assert mail.sent_at == future
    assert mail.trigger_at == future


def test_mark_sent_requires_active(mails, now):
    with pytest.raises(InvalidStateError):
        mark_sent(mails, "bank", now)
