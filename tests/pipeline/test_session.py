"""Tests for the analysis session state machine."""

import pytest

from airschema.core.errors import PhaseSequenceError, SessionNotFoundError
from airschema.pipeline.session import (
    PHASE_DEFINITIONS,
    AnalysisPhase,
    AnalysisSession,
    InMemorySessionStore,
)


class TestAnalysisSession:
    def test_new_session_is_pending(self):
        session = AnalysisSession()

        assert session.phase == AnalysisPhase.PENDING
        assert session.session_id
        assert not any(session.progress().values())

    def test_require_phase_names_both_phases(self):
        session = AnalysisSession(session_id="s1")

        with pytest.raises(PhaseSequenceError) as exc_info:
            session.require_phase(AnalysisPhase.CONFIDENCE_ANALYZED)

        error = exc_info.value
        assert error.actual == "pending"
        assert error.expected == "confidence-analyzed"
        assert "s1" in str(error)

    def test_progress_flags(self):
        session = AnalysisSession()
        session.advance(AnalysisPhase.JUNCTION_DETECTED)

        assert session.progress() == {
            "confidence_analyzed": True,
            "junction_detected": True,
            "junction_tables_created": False,
            "completed": False,
        }

    def test_phase_definitions_chain(self):
        """Each operation requires what the previous one produced."""
        assert PHASE_DEFINITIONS[0].requires == AnalysisPhase.PENDING
        for previous, current in zip(PHASE_DEFINITIONS, PHASE_DEFINITIONS[1:]):
            assert current.requires == previous.produces
        assert PHASE_DEFINITIONS[-1].produces == AnalysisPhase.COMPLETED


class TestInMemorySessionStore:
    def test_put_get_delete(self):
        store = InMemorySessionStore()
        session = AnalysisSession()

        store.put(session)
        assert store.get(session.session_id) is session
        assert store.list_ids() == [session.session_id]

        store.delete(session.session_id)
        assert store.list_ids() == []

    def test_unknown_session(self):
        with pytest.raises(SessionNotFoundError, match="not found: nope"):
            InMemorySessionStore().get("nope")
