import sys
import unittest
from datetime import timedelta
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resumefit.core import session_store  # noqa: E402
from resumefit.core.config import Settings, settings  # noqa: E402


def _settings(**overrides) -> Settings:
    values = dict(settings.__dict__)
    values.update(overrides)
    return Settings(**values)


class SessionStoreTests(unittest.TestCase):
    def setUp(self):
        session_store.clear_sessions()

    def tearDown(self):
        session_store.clear_sessions()

    def test_create_and_get_session(self):
        session = session_store.create_session(resume_text="Skills\nPython", role_query="developer")
        self.assertTrue(len(session.session_id) >= 20)
        fetched = session_store.get_session(session.session_id)
        self.assertIs(fetched, session)
        self.assertEqual(fetched.get_section("skills").content, "Python")
        self.assertEqual(fetched.role_query, "developer")

    def test_sessions_are_isolated(self):
        first = session_store.create_session(resume_text="Skills\nPython")
        second = session_store.create_session(resume_text="Skills\nGo")
        first.update_content("skills", "Rust")
        self.assertEqual(second.get_section("skills").content, "Go")
        self.assertNotEqual(first.session_id, second.session_id)

    def test_delete_session(self):
        session = session_store.create_session(resume_text="")
        self.assertTrue(session_store.delete_session(session.session_id))
        self.assertFalse(session_store.delete_session(session.session_id))
        self.assertIsNone(session_store.get_session(session.session_id))

    def test_expired_sessions_are_purged(self):
        session = session_store.create_session(resume_text="")
        session.touched_at = session.touched_at - timedelta(minutes=settings.session_ttl_minutes + 1)
        self.assertEqual(session_store.purge_expired_sessions(), 1)
        self.assertIsNone(session_store.get_session(session.session_id))

    def test_oldest_session_is_evicted_at_capacity(self):
        with patch.object(session_store, "settings", _settings(session_max_count=2)):
            oldest = session_store.create_session(resume_text="")
            oldest.touched_at = oldest.touched_at - timedelta(minutes=1)
            kept = session_store.create_session(resume_text="")
            newest = session_store.create_session(resume_text="")
            self.assertEqual(session_store.session_count(), 2)
            self.assertIsNone(session_store.get_session(oldest.session_id))
            self.assertIsNotNone(session_store.get_session(kept.session_id))
            self.assertIsNotNone(session_store.get_session(newest.session_id))


if __name__ == "__main__":
    unittest.main()
