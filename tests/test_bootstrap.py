"""Tests for gateway.scripts.bootstrap: seeding roles and users from the command line."""

import asyncio
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from io import StringIO
from unittest.mock import patch

from gateway.scripts.bootstrap import KNOWN_PERMISSIONS, main
from support import make_settings, make_store


class TestBootstrap(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.url = f"sqlite:///{os.path.join(self._tmp.name, 'seed.db')}"
        patcher = patch(
            "gateway.scripts.bootstrap.get_settings",
            return_value=make_settings(DATABASE_URL=self.url),
        )
        patcher.start()
        self.addCleanup(patcher.stop)

    def _main(self, *argv: str) -> tuple[int, str, str]:
        out, err = StringIO(), StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_create_admin_role_and_user(self) -> None:
        code, out, _ = self._main("create-role", "admin", "--all")
        self.assertEqual(code, 0)
        self.assertIn("admin", out)

        code, out, _ = self._main("create-user", "root@example.com", "root", "root-pass-1", "--role", "admin")
        self.assertEqual(code, 0)

        store = make_store(self.url)
        role = asyncio.run(store.get_role("admin"))
        self.assertEqual(role.permissions, frozenset(KNOWN_PERMISSIONS))
        user = asyncio.run(store.find_user_by_email("root@example.com"))
        self.assertEqual(user.role, "admin")

    def test_duplicate_role_fails_without_overwrite(self) -> None:
        self._main("create-role", "editor", "getUser")
        code, _, err = self._main("create-role", "editor", "deleteUser")
        self.assertEqual(code, 1)
        self.assertIn("already exists", err)

        code, _, _ = self._main("create-role", "editor", "deleteUser", "--overwrite")
        self.assertEqual(code, 0)
        role = asyncio.run(make_store(self.url).get_role("editor"))
        self.assertEqual(role.permissions, frozenset({"deleteUser"}))

    def test_init_db(self) -> None:
        code, out, _ = self._main("init-db")
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "Tables created.")
