from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from app.core.exceptions import NoContextAvailable
from app.services.session_store import SessionStore, StudySession


class TestStudySession:
    def test_starts_empty(self):
        session = StudySession(session_id="s1")
        assert not session.has_note
        with pytest.raises(NoContextAvailable):
            session.require_note()

    def test_set_overwrites(self):
        session = StudySession(session_id="s1")
        session.set_note("first summary")
        session.set_note("second summary")
        assert session.require_note() == "second summary"

    def test_whitespace_note_is_no_context(self):
        session = StudySession(session_id="s1", working_note="  \n")
        with pytest.raises(NoContextAvailable):
            session.require_note()

    def test_clear(self):
        session = StudySession(session_id="s1", working_note="notes")
        session.clear()
        assert not session.has_note


class TestSessionStore:
    def test_creates_when_missing(self):
        store = SessionStore()
        session = store.get_or_create(None)
        assert store.get(session.session_id) is session

    def test_unknown_id_gets_new_session(self):
        store = SessionStore()
        session = store.get_or_create("not-a-real-id")
        assert session.session_id != "not-a-real-id"
        assert len(store) == 1

    def test_sessions_are_isolated(self):
        store = SessionStore()
        a, b = store.create(), store.create()
        a.set_note("biology")
        assert not b.has_note
        assert store.get_or_create(a.session_id).working_note == "biology"

    def test_end(self):
        store = SessionStore()
        session = store.create()
        session.set_note("notes")
        assert store.end(session.session_id)
        assert store.get(session.session_id) is None
        assert not session.has_note
        assert not store.end(session.session_id)

    def test_idle_sessions_expire(self):
        store = SessionStore(ttl=timedelta(minutes=5))
        stale, fresh = store.create(), store.create()
        stale.last_used -= timedelta(minutes=6)
        assert store.purge_expired() == 1
        assert store.get(stale.session_id) is None
        assert store.get(fresh.session_id) is fresh

    def test_purge_skips_sessions_ended_meanwhile(self, monkeypatch):
        store = SessionStore(ttl=timedelta(minutes=5))
        stale = store.create()
        stale.last_used -= timedelta(minutes=6)
        real_is_expired = store._is_expired

        def ended_elsewhere(session):
            # Another request ends the session while the purge is scanning.
            store.end(session.session_id)
            return real_is_expired(session)

        monkeypatch.setattr(store, "_is_expired", ended_elsewhere)
        assert store.purge_expired() == 0
        assert len(store) == 0

    def test_concurrent_requests_with_expired_sessions(self):
        store = SessionStore(ttl=timedelta(minutes=5))
        stale_ids = []
        for _ in range(200):
            session = store.create()
            session.last_used -= timedelta(minutes=6)
            stale_ids.append(session.session_id)

        def request(i):
            return store.get_or_create(stale_ids[i % len(stale_ids)])

        with ThreadPoolExecutor(max_workers=16) as pool:
            sessions = list(pool.map(request, range(400)))

        assert all(s.session_id not in stale_ids for s in sessions)
        assert len(store) == 400
