"""
This module coordinates the two-phase automation-code generation protocol.

An analysis call inspects the scenario and the artifacts offered for reuse. When every required
code pattern is present, the code is generated straight away. Otherwise the session waits for the
caller to supply the missing artifacts, or to explicitly accept placeholders, before generating.

Session states: analyzing -> awaiting-input -> completed, analyzing -> completed,
awaiting-input -> abandoned.
"""
import logging
import uuid
from typing import Iterable, List, Optional

from automation.code_renderer import render_test
from automation.pattern_analyzer import PatternAnalysis, PatternAnalyzer
from models.generation_session import Artifact, GeneratedCode, GenerationSession, SessionStatus
from models.workflow import utcnow
from storage.session_store import SessionStore
from utils.exceptions import SessionNotFoundError, StillIncompleteError


class GenerationCoordinator:
    """
    Drives generation sessions held in a `SessionStore`.

    Args:
        store (SessionStore): Where sessions live between requests.
        analyzer (Optional[PatternAnalyzer]): Pattern detection; the regex analyzer by default.
    """

    def __init__(self, store: SessionStore, analyzer: Optional[PatternAnalyzer] = None):
        self.store = store
        self.analyzer = analyzer or PatternAnalyzer()

    def _run_analysis(self, session: GenerationSession) -> PatternAnalysis:
        analysis = self.analyzer.analyze(session.input_description, session.existing_artifacts)
        session.available_patterns = dict(analysis.available)
        session.missing_patterns = dict(analysis.missing)
        return analysis

    def _finish(self, session: GenerationSession, analysis: PatternAnalysis,
                placeholders: Optional[dict] = None) -> GeneratedCode:
        session.result = render_test(session.input_description, analysis, placeholders)
        session.status = SessionStatus.COMPLETED.value
        session.updated_at = utcnow()
        self.store.put(session)
        logging.info(
            f"Generation session {session.session_id} completed "
            f"({len(session.result.placeholders)} placeholder(s))"
        )
        return session.result

    def _open_session(self, session_id: str, phase: str) -> GenerationSession:
        session = self.store.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id, phase)
        if session.is_terminal:
            raise SessionNotFoundError(session_id, phase, status=session.status)
        return session

    def analyze(self, input_description: str, existing_artifacts: Iterable[Artifact] = ()) -> GenerationSession:
        """
        Starts a session. Completes it immediately when nothing is missing.

        Args:
            input_description (str): The test scenario to automate.
            existing_artifacts (Iterable[Artifact]): Source snippets offered for reuse, in order.

        Returns:
            GenerationSession: ``completed`` with code attached, or ``awaiting-input`` with
                               ``missing_patterns`` populated.
        """
        session = GenerationSession(
            session_id=uuid.uuid4().hex,
            input_description=input_description,
            existing_artifacts=list(existing_artifacts),
        )
        # Stored before analysis so a failed pass leaves a visible 'analyzing' session
        self.store.put(session)

        analysis = self._run_analysis(session)
        if session.can_generate_complete:
            self._finish(session, analysis)
        else:
            session.status = SessionStatus.AWAITING_INPUT.value
            session.updated_at = utcnow()
            self.store.put(session)
            logging.info(
                f"Generation session {session.session_id} awaiting input for: "
                f"{', '.join(session.missing_patterns)}"
            )
        return session

    def update(self, session_id: str, category: Optional[str], artifacts: Iterable[Artifact]) -> GenerationSession:
        """
        Appends artifacts to an open session without completing it, and refreshes what is missing.

        Raises:
            SessionNotFoundError: If the session is absent or terminal.
        """
        session = self._open_session(session_id, phase="update")
        for artifact in artifacts:
            if category and not artifact.category:
                artifact.category = category
            session.existing_artifacts.append(artifact)
        self._run_analysis(session)
        session.status = SessionStatus.AWAITING_INPUT.value
        session.updated_at = utcnow()
        self.store.put(session)
        return session

    def complete(self, session_id: str, supplied_artifacts: Optional[List[Artifact]] = None,
                 skip_missing: bool = False) -> GeneratedCode:
        """
        Finishes a session.

        Supplied artifacts are merged into the session and analysis reruns. If patterns are still
        missing, the call fails unless ``skip_missing`` is set, in which case every missing category
        is rendered as an explicit placeholder marker.

        Raises:
            SessionNotFoundError: If the session is absent or already completed/abandoned.
            StillIncompleteError: If patterns remain missing and ``skip_missing`` is false.
        """
        session = self._open_session(session_id, phase="complete")
        if supplied_artifacts:
            session.existing_artifacts.extend(supplied_artifacts)
        analysis = self._run_analysis(session)

        if session.missing_patterns and not skip_missing:
            session.status = SessionStatus.AWAITING_INPUT.value
            session.updated_at = utcnow()
            self.store.put(session)
            raise StillIncompleteError(session_id, session.missing_patterns)

        return self._finish(session, analysis, placeholders=session.missing_patterns)

    def abandon(self, session_id: str) -> GenerationSession:
        """
        Cancels an open session.

        Raises:
            SessionNotFoundError: If the session is absent or already terminal.
        """
        session = self._open_session(session_id, phase="cancel")
        session.status = SessionStatus.ABANDONED.value
        session.updated_at = utcnow()
        self.store.put(session)
        logging.info(f"Generation session {session_id} abandoned")
        return session

    def get(self, session_id: str) -> GenerationSession:
        session = self.store.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id, phase="get")
        return session

    def evict_stale(self, max_age_seconds: float) -> List[str]:
        """Drops sessions idle for longer than ``max_age_seconds``, whatever their status."""
        evicted = self.store.evict_older_than(max_age_seconds)
        if evicted:
            logging.info(f"Evicted {len(evicted)} stale generation session(s)")
        return evicted
