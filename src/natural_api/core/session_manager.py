# src/natural_api/core/session_manager.py
"""
Per-thread requests.Session для HttpClientExecutor.

requests.Session не потокобезопасен, а один executor обычно разделяют
все параллельные тесты. Каждый поток получает свою сессию (и свой пул
соединений), создаваемую лениво при первом запросе.
"""

import logging
import threading
import weakref
from typing import Callable, Set

import requests

logger = logging.getLogger(__name__)


class ThreadSafeSessionManager:
    """
    Ленивые thread-local сессии с общим закрытием.

    Args:
        session_factory: Создаёт и настраивает новую сессию

    Example:
        >>> sessions = ThreadSafeSessionManager(requests.Session)
        >>> session = sessions.get_session()  # своя для каждого потока
        >>> sessions.close_all()
    """

    def __init__(self, session_factory: Callable[[], requests.Session]):
        self._session_factory = session_factory
        self._local = threading.local()

        # weakref: сессия умершего потока собирается GC и выпадает из набора
        self._sessions: Set[weakref.ref] = set()
        self._lock = threading.Lock()

    def get_session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._session_factory()
            self._local.session = session
            with self._lock:
                self._sessions.add(weakref.ref(session, self._forget))
            logger.debug("Created session for thread %s", threading.current_thread().name)
        return session

    def _forget(self, ref: weakref.ref) -> None:
        with self._lock:
            self._sessions.discard(ref)

    def close_all(self) -> None:
        """Закрыть сессии всех потоков. Можно вызывать повторно."""
        self._local.session = None

        with self._lock:
            refs = list(self._sessions)
            self._sessions.clear()

        for ref in refs:
            session = ref()
            if session is not None:
                session.close()

    @property
    def active_sessions(self) -> int:
        """Сколько сессий сейчас живо."""
        with self._lock:
            return sum(1 for ref in self._sessions if ref() is not None)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close_all()
        return False
