import pytest

from app.domain.entities import Account, Channel, Contact, RegistrationSession


def test_email_is_normalized():
    c = Contact.email("  Jeremy@Example.COM ")
    assert c.channel is Channel.EMAIL
    assert c.value == "jeremy@example.com"
    assert c.as_columns() == ("jeremy@example.com", None)


def test_phone_is_normalized_to_e164():
    c = Contact.phone("+1 (555) 123-4567")
    assert c.channel is Channel.PHONE
    assert c.value == "+15551234567"
    assert c.as_columns() == (None, "+15551234567")


@pytest.mark.parametrize("bad", ["", "no-at-sign", "a@b", "two@@example.com"])
def test_invalid_email_rejected(bad):
    with pytest.raises(ValueError):
        Contact.email(bad)


def test_invalid_phone_rejected():
    with pytest.raises(ValueError):
        Contact.phone("12345")


def test_parse_picks_channel():
    assert Contact.parse("a@example.com").channel is Channel.EMAIL
    assert Contact.parse("+447700900123").channel is Channel.PHONE


def test_from_columns_requires_exactly_one():
    assert Contact.from_columns("a@example.com", None).channel is Channel.EMAIL
    with pytest.raises(ValueError):
        Contact.from_columns("a@example.com", "+15551234567")
    with pytest.raises(ValueError):
        Contact.from_columns(None, None)


def test_masked_hides_most_of_the_value():
    assert Contact.email("alice@example.com").masked == "a***@example.com"
    assert Contact.phone("+15551234567").masked == "+15***67"


def test_session_roundtrips_through_dict():
    session = RegistrationSession(
        session_id="s1", contact=Contact.phone("+15551234567"), verified=True
    )
    again = RegistrationSession.from_dict("s1", session.to_dict())
    assert again.contact == session.contact
    assert again.verified is True


def test_account_requires_a_contact_and_tracks_verification():
    with pytest.raises(ValueError):
        Account(id="x")
    account = Account(id="x", email="A@Example.com")
    assert account.email == "a@example.com"
    assert not account.is_verified(Channel.EMAIL)
    account.mark_verified(Channel.EMAIL)
    assert account.is_verified(Channel.EMAIL)
