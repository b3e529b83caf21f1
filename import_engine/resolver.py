"""
import_engine.resolver - Natural-key resolution of related entities.

IdMap is the per-batch memory of "this key already means row N".  It is
created by the orchestrator, handed down explicitly, and discarded when
the batch ends.  Keys are (entity, "kind:value") pairs, e.g.
("contacts", "email:jane@example.com") or ("orders", "source:17").
"""

from __future__ import annotations

import logging

from import_engine.errors import ResolutionError
from import_engine.gateway import Gateway

logger = logging.getLogger(__name__)


class IdMap:
    """Batch-scoped mapping from natural or source keys to persisted ids."""

    def __init__(self):
        self._ids: dict[tuple[str, str], int] = {}

    @staticmethod
    def _key(entity: str, kind: str, value) -> tuple[str, str]:
        return entity, f"{kind}:{str(value).strip().lower()}"

    def get(self, entity: str, kind: str, value) -> int | None:
        return self._ids.get(self._key(entity, kind, value))

    def put(self, entity: str, kind: str, value, row_id: int) -> None:
        self._ids[self._key(entity, kind, value)] = row_id

    def snapshot(self) -> dict:
        return dict(self._ids)

    def restore(self, snap: dict) -> None:
        """Forget keys added since ``snap`` (their rows were rolled back)."""
        self._ids = dict(snap)

    def __len__(self):
        return len(self._ids)

    def __contains__(self, item):
        entity, kind, value = item
        return self._key(entity, kind, value) in self._ids


def split_name(full_name: str) -> tuple[str, str]:
    """Split at the first space: "Mary Jane Doe" → ("Mary", "Jane Doe")."""
    first, _, last = (full_name or "").strip().partition(" ")
    return first, last.strip()


class EntityResolver:
    """
    Looks up (or creates) rows referenced by natural key within one batch.

    Email beats name: when both are given, an email match wins even if
    the name would have matched a different contact.
    """

    def __init__(self, gateway: Gateway, owner_id: int, id_map: IdMap | None = None):
        self.gateway = gateway
        self.owner_id = owner_id
        self.ids = id_map if id_map is not None else IdMap()

    # ── Contacts ───────────────────────────────────────────────────────

    def find_contact(self, name: str = "", email: str = "") -> int | None:
        """Existing contact id for an email or full name, or None."""
        name, email = (name or "").strip(), (email or "").strip()

        if email:
            cid = self.ids.get("contacts", "email", email)
            if cid is None:
                row = self.gateway.find_by_key("contacts", {"email": email}, self.owner_id)
                cid = row.id if row else None
            if cid is not None:
                self.remember_contact(cid, name, email)
                return cid

        if name:
            cid = self.ids.get("contacts", "name", name)
            if cid is None:
                first, last = split_name(name)
                row = self.gateway.find_by_key(
                    "contacts", {"first_name": first, "last_name": last}, self.owner_id,
                )
                cid = row.id if row else None
            if cid is not None:
                self.remember_contact(cid, name, email)
                return cid

        return None

    def contact_id(self, name: str = "", email: str = "", defaults: dict | None = None) -> int:
        """
        Id of the contact named by ``email``/``name``, creating a minimal
        contact when nothing matches.  Raises ResolutionError when neither
        key is given.
        """
        name, email = (name or "").strip(), (email or "").strip()
        if not name and not email:
            raise ResolutionError("Missing contact name")

        cid = self.find_contact(name, email)
        if cid is not None:
            return cid

        first, last = split_name(name)
        record = {
            "owner_id": self.owner_id,
            "first_name": first,
            "last_name": last,
            "email": email,
        }
        record.update(defaults or {})
        cid = self.gateway.insert("contacts", record)
        logger.info(f"Created contact #{cid} for {name or email!r}")
        self.remember_contact(cid, name, email)
        return cid

    def remember_contact(self, cid: int, name: str = "", email: str = "") -> None:
        if email:
            self.ids.put("contacts", "email", email, cid)
        if name:
            self.ids.put("contacts", "name", name, cid)

    # ── Orders ─────────────────────────────────────────────────────────

    def order_id_by_number(self, number: str) -> int | None:
        number = (number or "").strip()
        if not number:
            return None
        oid = self.ids.get("orders", "number", number)
        if oid is None:
            row = self.gateway.find_by_key("orders", {"order_number": number}, self.owner_id)
            if row is None:
                return None
            oid = row.id
            self.ids.put("orders", "number", number, oid)
        return oid

    # ── Source-id remapping (JSON dataset) ─────────────────────────────

    def register(self, entity: str, source_id, new_id: int) -> None:
        if source_id is not None:
            self.ids.put(entity, "source", source_id, new_id)

    def remap(self, entity: str, source_id) -> int | None:
        if source_id is None:
            return None
        return self.ids.get(entity, "source", source_id)
