from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Protocol, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .analysis import TransformPlan, analyze_transform
from .augmentation import AugmentedInterpreter
from .config import EngineSettings
from .errors import SessionNotFoundError
from .history import DEFAULT_HISTORY_LIMIT, HistoryManager
from .interpreter import CommandInterpreter
from .logging_config import session_context
from .models.edit import ChatInterpretation
from .models.section import PageNode, SectionNode
from .registry import VariantRegistry
from .transforms import TransformEngine

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = timedelta(minutes=30)


class ChatInterpreter(Protocol):
    def interpret(self, command: str, sections: Sequence[SectionNode]) -> ChatInterpretation:
        ...


class CommandResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    sections: Sequence[SectionNode]
    intents: Sequence[str] = Field(default_factory=list)
    warnings: Sequence[str] = Field(default_factory=list)
    analysis: TransformPlan | None = None
    changed: bool = False


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class EditingSession:
    id: str
    history: HistoryManager
    created_at: datetime
    updated_at: datetime
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class SessionStore:
    """In-memory editing sessions, one history per session.

    The store lock guards the session table; each session's own lock
    serialises commands against that session's history.
    """

    def __init__(
        self,
        interpreter: ChatInterpreter | None = None,
        *,
        engine: TransformEngine | None = None,
        ttl: timedelta = DEFAULT_SESSION_TTL,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._interpreter = interpreter or CommandInterpreter()
        self._engine = engine or TransformEngine()
        self._ttl = ttl
        self._history_limit = history_limit
        self._clock = clock
        self._sessions: Dict[str, EditingSession] = {}
        self._lock = threading.Lock()

    def create_session(
        self,
        sections: Sequence[SectionNode] | PageNode,
        *,
        session_id: str | None = None,
    ) -> EditingSession:
        if isinstance(sections, PageNode):
            sections = sections.sections
        self.cleanup()
        now = self._clock()
        session = EditingSession(
            id=session_id or self._generate_id(),
            history=HistoryManager(sections, engine=self._engine, limit=self._history_limit),
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._sessions[session.id] = session
        logger.info("Created editing session", extra={"session_id": session.id, "sections": len(sections)})
        return session

    def get_session(self, session_id: str) -> EditingSession:
        self.cleanup()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            session.updated_at = self._clock()
            return session

    def close_session(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def cleanup(self) -> int:
        cutoff = self._clock() - self._ttl
        with self._lock:
            expired = [sid for sid, session in self._sessions.items() if session.updated_at < cutoff]
            for sid in expired:
                del self._sessions[sid]
        if expired:
            logger.info("Expired editing sessions", extra={"expired": len(expired)})
        return len(expired)

    def handle_command(self, session_id: str, command: str) -> CommandResult:
        session = self.get_session(session_id)
        with session_context(session.id), session.lock:
            before = session.history.current()
            interpretation = self._interpreter.interpret(command, before)
            if interpretation.transforms:
                after = session.history.apply(interpretation.transforms)
            else:
                after = before
            analysis = analyze_transform(before, after)
            logger.info(
                "Applied editing command",
                extra={
                    "session_id": session.id,
                    "intents": interpretation.intent_names,
                    "transforms": len(interpretation.transforms),
                    "warnings": list(interpretation.warnings),
                },
            )
        return CommandResult(
            sections=after,
            intents=interpretation.intent_names,
            warnings=list(interpretation.warnings),
            analysis=analysis,
            changed=analysis.changed,
        )

    def preview(self, session_id: str, command: str) -> CommandResult:
        """Interpret and apply ``command`` without recording it in history."""
        session = self.get_session(session_id)
        with session_context(session.id):
            with session.lock:
                before = session.history.current()
            interpretation = self._interpreter.interpret(command, before)
            after = self._engine.apply(interpretation.transforms, before)
        analysis = analyze_transform(before, after)
        return CommandResult(
            sections=after,
            intents=interpretation.intent_names,
            warnings=list(interpretation.warnings),
            analysis=analysis,
            changed=analysis.changed,
        )

    def undo(self, session_id: str) -> CommandResult:
        session = self.get_session(session_id)
        with session_context(session.id), session.lock:
            sections = session.history.undo()
            if sections is None:
                return CommandResult(sections=session.history.current(), warnings=["Nothing to undo."])
            logger.info("Undid editing command", extra={"session_id": session.id})
        return CommandResult(sections=sections, changed=True)

    def redo(self, session_id: str) -> CommandResult:
        session = self.get_session(session_id)
        with session_context(session.id), session.lock:
            sections = session.history.redo()
            if sections is None:
                return CommandResult(sections=session.history.current(), warnings=["Nothing to redo."])
            logger.info("Redid editing command", extra={"session_id": session.id})
        return CommandResult(sections=sections, changed=True)

    def current(self, session_id: str) -> list[SectionNode]:
        session = self.get_session(session_id)
        with session.lock:
            return session.history.current()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _generate_id(self) -> str:
        ts = self._clock().strftime("%Y%m%d%H%M%S")
        return f"session_{ts}_{uuid.uuid4().hex[:6]}"


def session_store_from_settings(
    settings: EngineSettings,
    *,
    registry: VariantRegistry | None = None,
) -> SessionStore:
    """Build a store whose interpreter matches ``settings``."""
    base = CommandInterpreter(registry, fold_depth=settings.fold_depth)
    interpreter: ChatInterpreter = base
    if settings.augmentation_enabled:
        from .gemini_interpreter import GeminiInterpreter

        interpreter = AugmentedInterpreter(
            base,
            GeminiInterpreter(api_key=settings.gemini_api_key, model_name=settings.gemini_model),
            confidence_threshold=settings.confidence_threshold,
        )
    return SessionStore(
        interpreter,
        ttl=settings.session_ttl,
        history_limit=settings.history_limit,
    )


__all__ = [
    "SessionStore",
    "EditingSession",
    "CommandResult",
    "ChatInterpreter",
    "session_store_from_settings",
]
