"""Tests for gateway.services.store.CredentialStore against a real SQLite database."""

import asyncio
import os
import tempfile
import unittest
from datetime import UTC, datetime
from unittest.mock import patch

from sqlalchemy import update
from sqlalchemy.orm import Session

from gateway.core.database import create_db_engine, create_session_factory, init_db
from gateway.core.errors import MalformedRecordError
from gateway.models import Role
from gateway.services.store import (
    ConcurrentUpdateError,
    CredentialStore,
    DuplicateKeyError,
)
from support import make_store


def _insert(store: CredentialStore, email: str = "ana@example.com", username: str = "ana", role: str = "editor"):
    return asyncio.run(
        store.insert_user(
            email=email,
            username=username,
            password_hash="hash",
            role=role,
            date_register=datetime.now(UTC),
        )
    )


class TestUsers(unittest.TestCase):
    def setUp(self) -> None:
        self.store = make_store()

    def test_insert_assigns_id_and_null_last_login(self) -> None:
        user = _insert(self.store)
        self.assertEqual(len(user.id), 32)
        self.assertIsNone(user.last_login)
        self.assertEqual(asyncio.run(self.store.get_user(user.id)), user)

    def test_timestamps_read_back_as_utc(self) -> None:
        user = _insert(self.store)
        when = datetime.now(UTC)
        asyncio.run(self.store.touch_last_login(user.id, when))
        [listed] = asyncio.run(self.store.list_users())
        self.assertEqual(listed.date_register.tzinfo, UTC)
        self.assertEqual(listed.date_register, user.date_register)
        self.assertEqual(listed.last_login, when)
        self.assertEqual(asyncio.run(self.store.get_user(user.id)), listed)

    def test_email_unique_index(self) -> None:
        _insert(self.store)
        with self.assertRaises(DuplicateKeyError):
            _insert(self.store, username="other")

    def test_email_is_case_sensitive(self) -> None:
        _insert(self.store)
        _insert(self.store, email="Ana@example.com")
        self.assertIsNone(asyncio.run(self.store.find_user_by_email("ANA@example.com")))

    def test_find_by_credentials_needs_both_fields(self) -> None:
        user = _insert(self.store)
        found = asyncio.run(self.store.find_user_by_credentials("ana@example.com", "ana"))
        self.assertEqual(found.id, user.id)
        self.assertIsNone(asyncio.run(self.store.find_user_by_credentials("ana@example.com", "bob")))

    def test_touch_last_login(self) -> None:
        user = _insert(self.store)
        self.assertTrue(asyncio.run(self.store.touch_last_login(user.id, datetime.now(UTC))))
        self.assertIsNotNone(asyncio.run(self.store.get_user(user.id)).last_login)
        self.assertFalse(asyncio.run(self.store.touch_last_login("missing", datetime.now(UTC))))

    def test_delete_user(self) -> None:
        user = _insert(self.store)
        self.assertTrue(asyncio.run(self.store.delete_user(user.id)))
        self.assertFalse(asyncio.run(self.store.delete_user(user.id)))
        self.assertEqual(asyncio.run(self.store.list_users()), [])


class TestRoles(unittest.TestCase):
    def setUp(self) -> None:
        self.store = make_store()

    def test_put_role_dedupes_permissions(self) -> None:
        role, created = asyncio.run(self.store.put_role("editor", ["getUser", "getUser", "addRol"]))
        self.assertTrue(created)
        self.assertEqual(role.permissions, frozenset({"getUser", "addRol"}))

    def test_put_role_existing_without_overwrite(self) -> None:
        asyncio.run(self.store.put_role("editor", ["getUser"]))
        with self.assertRaises(DuplicateKeyError):
            asyncio.run(self.store.put_role("editor", []))

    def test_put_role_existing_with_overwrite(self) -> None:
        asyncio.run(self.store.put_role("editor", ["getUser"]))
        role, created = asyncio.run(self.store.put_role("editor", ["deleteUser"], overwrite=True))
        self.assertFalse(created)
        self.assertEqual(role.permissions, frozenset({"deleteUser"}))

    def test_overwrite_when_concurrent_create_wins_the_insert(self) -> None:
        asyncio.run(self.store.put_role("editor", ["getUser"]))
        real_get = Session.get
        misses = []

        def get_missing_once(db, entity, ident, **kwargs):
            # The first lookup behaves as if the other writer had not committed yet.
            if not misses:
                misses.append(ident)
                return None
            return real_get(db, entity, ident, **kwargs)

        with patch.object(Session, "get", autospec=True, side_effect=get_missing_once):
            role, created = asyncio.run(
                self.store.put_role("editor", ["deleteUser"], overwrite=True)
            )
        self.assertEqual(misses, ["editor"])
        self.assertFalse(created)
        self.assertEqual(role.permissions, frozenset({"deleteUser"}))

    def test_concurrent_create_without_overwrite_is_duplicate(self) -> None:
        asyncio.run(self.store.put_role("editor", ["getUser"]))
        with patch.object(Session, "get", return_value=None):
            with self.assertRaises(DuplicateKeyError):
                asyncio.run(self.store.put_role("editor", ["deleteUser"]))
        self.assertEqual(
            asyncio.run(self.store.get_role("editor")).permissions, frozenset({"getUser"})
        )

    def test_update_missing_role_returns_none(self) -> None:
        result = asyncio.run(self.store.update_role_permissions("ghost", lambda cur: cur | {"x"}))
        self.assertIsNone(result)

    def test_malformed_permissions_raise(self) -> None:
        asyncio.run(self.store.put_role("broken", []))
        with self.store._session_factory() as db:
            db.execute(update(Role).where(Role.name == "broken").values(permissions={"not": "a list"}))
            db.commit()
        with self.assertRaises(MalformedRecordError):
            asyncio.run(self.store.get_role("broken"))


class TestOptimisticConcurrency(unittest.TestCase):
    """A writer that changes the role between our read and write forces a retry, not a lost update."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        url = f"sqlite:///{os.path.join(self._tmp.name, 'roles.db')}"
        self.engine = create_db_engine(url)
        init_db(self.engine)
        self.store = CredentialStore(create_session_factory(self.engine))
        asyncio.run(self.store.put_role("editor", ["getUser"]))

    def tearDown(self) -> None:
        self.engine.dispose()
        self._tmp.cleanup()

    def _concurrent_add(self, permission: str) -> None:
        """Simulate another request committing in between our read and our write."""
        with create_session_factory(self.engine)() as other:
            row = other.get(Role, "editor")
            row.permissions = sorted(set(row.permissions) | {permission})
            other.commit()

    def test_interleaved_update_is_not_lost(self) -> None:
        calls = []

        def mutate(current):
            calls.append(current)
            if len(calls) == 1:
                self._concurrent_add("deleteUser")
            return current | {"addRol"}

        role = asyncio.run(self.store.update_role_permissions("editor", mutate, retries=3))
        self.assertEqual(len(calls), 2)
        self.assertEqual(role.permissions, frozenset({"getUser", "deleteUser", "addRol"}))

    def test_gives_up_after_retries(self) -> None:
        counter = iter(range(100))

        def mutate(current):
            self._concurrent_add(f"perm{next(counter)}")
            return current | {"addRol"}

        with self.assertRaises(ConcurrentUpdateError):
            asyncio.run(self.store.update_role_permissions("editor", mutate, retries=2))
