import os
import subprocess
import sys
import unittest
from pathlib import Path

_APP_DIR = Path(__file__).resolve().parents[2]

_PATCH_SENTRY_INIT = [
    "from unittest import mock",
    "import sentry_sdk",
    'mock.patch.object(sentry_sdk, "init", side_effect=lambda **kw: print("sentry-init", kw["dsn"])).start()',
]


def _import_settings(env_overrides: dict[str, str], *, prelude: list[str] | None = None):
    env = os.environ.copy()
    for name in ("SENTRY_DSN", "SECRET_KEY", "DEBUG", "DATABASE_HOST"):
        env.pop(name, None)
    env.update(env_overrides)
    code = "\n".join(
        [
            "import sys",
            f"sys.path.insert(0, {str(_APP_DIR)!r})",
            *(prelude or []),
            "import config.settings",
            'print("ok")',
        ]
    )
    return subprocess.run([sys.executable, "-c", code], env=env, capture_output=True, text=True, check=False)


class SettingsTests(unittest.TestCase):
    def test_refuses_default_secret_key_in_production(self) -> None:
        result = _import_settings({"DEBUG": "0"})
        self.assertNotEqual(result.returncode, 0)
        self.assertIn("SECRET_KEY must be set", result.stderr)

    def test_sentry_sdk_is_initialized_when_dsn_is_set(self) -> None:
        result = _import_settings(
            {
                "DEBUG": "0",
                "SECRET_KEY": "test-secret-key-not-insecure-37-chars",
                "SENTRY_DSN": "http://public@example.invalid/1",
            },
            prelude=_PATCH_SENTRY_INIT,
        )
        self.assertEqual(result.returncode, 0, result.stderr)
        self.assertIn("sentry-init http://public@example.invalid/1", result.stdout)

    def test_sentry_sdk_is_not_initialized_without_dsn(self) -> None:
        result = _import_settings({"DEBUG": "1"}, prelude=_PATCH_SENTRY_INIT)
        self.assertEqual(result.returncode, 0, result.stderr)
        self.assertNotIn("sentry-init", result.stdout)
        self.assertIn("ok", result.stdout)
