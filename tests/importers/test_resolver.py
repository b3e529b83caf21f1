import pytest

from db import get_session
from db.models import Contact
from import_engine.errors import ResolutionError
from import_engine.gateway import Gateway
from import_engine.resolver import EntityResolver, IdMap, split_name
from tests.factories import ContactFactory


def _resolve(owner_id, fn):
    """Run fn(resolver) in its own session and commit."""
    session = get_session()
    try:
        result = fn(EntityResolver(Gateway(session), owner_id))
        session.commit()
        return result
    finally:
        session.close()


def test_same_email_resolves_to_one_contact(owner_id, rows):
    ids = _resolve(owner_id, lambda r: (
        r.contact_id("Jane Doe", "jane@example.com"),
        r.contact_id("J. Doe", " JANE@example.com "),
    ))
    assert ids[0] == ids[1]
    assert len(rows(Contact, owner_id=owner_id)) == 1


def test_email_match_beats_name_match(owner_id):
    ContactFactory(owner_id=owner_id, first_name="Jane", last_name="Doe", email="jane@example.com")
    other = ContactFactory(owner_id=owner_id, first_name="Sam", last_name="Hill", email="sam@example.com")

    found = _resolve(owner_id, lambda r: r.find_contact("Jane Doe", "sam@example.com"))
    assert found == other.id


def test_existing_contact_found_by_name(owner_id, rows):
    jane = ContactFactory(owner_id=owner_id, first_name="Jane", last_name="Doe", email="")
    cid = _resolve(owner_id, lambda r: r.contact_id("jane doe", ""))
    assert cid == jane.id
    assert len(rows(Contact, owner_id=owner_id)) == 1


def test_other_owners_contacts_are_invisible(owner_id, rows):
    ContactFactory(first_name="Jane", last_name="Doe", email="jane@example.com")
    _resolve(owner_id, lambda r: r.contact_id("Jane Doe", "jane@example.com"))
    assert len(rows(Contact, owner_id=owner_id)) == 1
    assert len(rows(Contact, email="jane@example.com")) == 2


def test_created_contact_splits_name(owner_id, rows):
    _resolve(owner_id, lambda r: r.contact_id("Mary Jane Watson"))
    (contact,) = rows(Contact, owner_id=owner_id)
    assert (contact.first_name, contact.last_name) == ("Mary", "Jane Watson")


def test_missing_name_and_email_raises(owner_id):
    with pytest.raises(ResolutionError, match="Missing contact name"):
        _resolve(owner_id, lambda r: r.contact_id("  ", ""))


def test_split_name():
    assert split_name("Cher") == ("Cher", "")
    assert split_name("  Jane   Doe ") == ("Jane", "Doe")


def test_id_map_keys_ignore_case_and_can_be_rolled_back():
    ids = IdMap()
    ids.put("contacts", "email", "Jane@Example.com", 7)
    snap = ids.snapshot()
    ids.put("orders", "number", "1001", 3)

    assert ids.get("contacts", "email", " jane@example.com") == 7
    assert ("orders", "number", "1001") in ids
    ids.restore(snap)
    assert ids.get("orders", "number", "1001") is None
    assert len(ids) == 1
