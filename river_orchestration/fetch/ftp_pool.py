"""
FTP Session Pool with Blocking Handoff

Owns a fixed number of authenticated FTP sessions and exposes a single
"fetch bytes at path" operation:
- At most N transfers in flight (one per session)
- Idle sessions are handed over through a blocking free-list (no polling)
- A failed transfer returns its session to the free-list (no eviction)
- Transient 4xx replies are retried on the same session
"""
import ftplib
import io
import logging
import queue
import threading
from typing import Callable, List, Optional

from tenacity import (
    Retrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log
)

from ..config import (
    FTP_CONCURRENCY,
    FTP_TIMEOUT,
    MAX_RETRIES,
    RETRY_INITIAL_WAIT,
    RETRY_MAX_WAIT,
    RETRY_MULTIPLIER
)
from ..exceptions import RemoteConnectionError, TransferError

logger = logging.getLogger(__name__)


def default_session_factory(timeout: int = FTP_TIMEOUT) -> ftplib.FTP:
    """Create an unconnected ftplib session"""
    return ftplib.FTP(timeout=timeout)


def _close_session(session) -> None:
    """Politely quit a session, falling back to a hard close."""
    try:
        session.quit()
    except ftplib.all_errors:
        session.close()


class FtpSessionPool:
    """
    Pool of independent FTP sessions against one server.

    Use ``FtpSessionPool.open(...)`` to connect; the constructor only wraps
    sessions that are already authenticated.
    """

    def __init__(self, sessions: List, host: str = None, retry_attempts: int = MAX_RETRIES):
        """
        Args:
            sessions: Connected, logged-in sessions (ftplib.FTP compatible)
            host: Server name (for log messages)
            retry_attempts: Attempts per transfer on transient replies
        """
        if not sessions:
            raise ValueError("FtpSessionPool needs at least one session")

        self.host = host
        self.retry_attempts = retry_attempts
        self._sessions = list(sessions)
        self._idle = queue.Queue()
        for session in self._sessions:
            self._idle.put(session)

        self._closed = False
        self._close_lock = threading.Lock()

    @property
    def size(self) -> int:
        return len(self._sessions)

    @property
    def closed(self) -> bool:
        return self._closed

    @classmethod
    def open(
        cls,
        host: str,
        user: str,
        password: str,
        concurrency: int = FTP_CONCURRENCY,
        directory: Optional[str] = None,
        session_factory: Callable[[], object] = default_session_factory,
        retry_attempts: int = MAX_RETRIES
    ) -> "FtpSessionPool":
        """
        Connect exactly ``concurrency`` sessions to the same server.

        Each session is logged in and positioned at ``directory``. If any
        session fails, all sessions opened so far are closed before the
        error propagates.

        Args:
            host: FTP server host name
            user: Login user (e.g. "anonymous")
            password: Login password (e.g. "guest")
            concurrency: Number of sessions to open
            directory: Initial working directory (None = server default)
            session_factory: Creates an unconnected session
            retry_attempts: Attempts per transfer on transient replies

        Returns:
            Connected pool

        Raises:
            RemoteConnectionError: If any session cannot be established
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")

        logger.info(f"Initializing FTP pool with {concurrency} connections to {host}...")

        sessions = []
        for i in range(concurrency):
            session = None
            try:
                session = session_factory()
                session.connect(host)
                session.login(user, password)
                if directory:
                    session.cwd(directory)
            except ftplib.all_errors as e:
                logger.error(f"FTP session {i + 1}/{concurrency} to {host} failed: {e}")
                if session is not None:
                    sessions.append(session)
                for opened in sessions:
                    _close_session(opened)
                raise RemoteConnectionError(
                    f"Could not open {concurrency} FTP sessions to {host}: {e}"
                ) from e
            sessions.append(session)

        return cls(sessions, host=host, retry_attempts=retry_attempts)

    def fetch(self, path: str) -> str:
        """
        Download a remote file and return it decoded as text.

        Blocks until a session is idle. The session is always returned to
        the pool, whether or not the transfer succeeds.

        Args:
            path: Remote path relative to the working directory

        Returns:
            File contents (UTF-8, undecodable bytes replaced)

        Raises:
            TransferError: If the download fails or the pool is closed
        """
        if self._closed:
            raise TransferError(path, "session pool is closed")

        session = self._idle.get()
        try:
            if self._closed:
                raise TransferError(path, "session pool is closed")
            data = self._download(session, path)
        finally:
            self._idle.put(session)

        return data.decode("utf-8", errors="replace")

    def _download(self, session, path: str) -> bytes:
        """Binary transfer into an in-memory buffer, retrying transient replies."""
        retrying = Retrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(
                multiplier=RETRY_MULTIPLIER,
                min=RETRY_INITIAL_WAIT,
                max=RETRY_MAX_WAIT
            ),
            retry=retry_if_exception_type(ftplib.error_temp),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True
        )

        try:
            for attempt in retrying:
                with attempt:
                    buffer = io.BytesIO()
                    session.retrbinary(f"RETR {path}", buffer.write)
        except ftplib.all_errors as e:
            raise TransferError(path, f"{type(e).__name__}: {e}") from e

        logger.debug(f"Downloaded {path} ({buffer.tell()} bytes)")
        return buffer.getvalue()

    def close(self) -> None:
        """Terminate all sessions. Safe to call more than once."""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        for session in self._sessions:
            _close_session(session)

        logger.info("FTP pool closed.")

    def __enter__(self) -> "FtpSessionPool":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
