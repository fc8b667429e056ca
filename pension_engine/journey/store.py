"""
Journey Persistence

Key-value storage backends and the stores built on them. Storage failures
never reach the caller: they are logged and the in-memory state stays
authoritative for the rest of the session.
"""

import json
import logging
import os
import secrets
import string
import tempfile
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Callable, Optional

from .models import (
    JourneyEvent,
    LeadSubmission,
    UserJourneyState,
    UserProfile,
    utcnow,
)

logger = logging.getLogger(__name__)

JOURNEY_STATE_KEY = 'pension_journey_state'
USER_EMAIL_KEY = 'pension_user_email'
LEADS_KEY = 'pension_leads'
ANALYTICS_KEY = 'pension_analytics'
LEGACY_SESSION_EMAIL_KEY = 'pensionCalculatorEmail'

PERSISTENCE_ERRORS = (OSError, ValueError, TypeError, KeyError)
CORRUPT_STATE_ERRORS = PERSISTENCE_ERRORS + (AttributeError, ArithmeticError)

_ID_ALPHABET = string.digits + string.ascii_lowercase


# =============================================================================
# STORAGE BACKENDS
# =============================================================================


class KeyValueStorage(ABC):
    """String key -> string value storage, like browser local storage."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...


class InMemoryStorage(KeyValueStorage):

    def __init__(self, initial: Optional[dict] = None):
        self._data = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage(KeyValueStorage):
    """One file per key inside a directory. Writes replace the file atomically."""

    def __init__(self, directory: str):
        self.directory = directory

    def _path(self, key: str) -> str:
        return os.path.join(self.directory, f"{key}.json")

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    def set(self, key: str, value: str) -> None:
        os.makedirs(self.directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(value)
            os.replace(tmp_path, self._path(key))
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def remove(self, key: str) -> None:
        path = self._path(key)
        if os.path.exists(path):
            os.remove(path)


# =============================================================================
# JOURNEY STATE
# =============================================================================


def generate_user_id(clock: Callable = utcnow) -> str:
    """user_<epoch ms>_<9 random base36 chars>."""
    millis = int(clock().timestamp() * 1000)
    suffix = ''.join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"user_{millis}_{suffix}"


class JourneyStateStore:
    """
    Loads and saves the UserJourneyState aggregate.

    storage holds the persistent keys; legacy_storage, when given, is the
    session-scoped store that may still carry a bare email from the old
    single-field capture. derive is applied to a migrated state so its
    metrics reflect the recovered email.
    """

    def __init__(self, storage: KeyValueStorage, legacy_storage: Optional[KeyValueStorage] = None,
                 clock: Callable = utcnow,
                 derive: Optional[Callable[[UserJourneyState], UserJourneyState]] = None):
        self.storage = storage
        self.legacy_storage = legacy_storage
        self.clock = clock
        self.derive = derive

    def create_new_state(self, source: Optional[str] = None,
                         utm_params: Optional[dict] = None) -> UserJourneyState:
        now = self.clock()
        return UserJourneyState(
            user_id=generate_user_id(self.clock),
            created_at=now,
            last_updated=now,
            source=source,
            utm_params=utm_params,
        )

    def load(self) -> Optional[UserJourneyState]:
        try:
            raw = self.storage.get(JOURNEY_STATE_KEY)
            if not raw:
                return None
            return UserJourneyState.from_dict(json.loads(raw))
        except CORRUPT_STATE_ERRORS:
            logger.error("Error loading journey state, starting fresh", exc_info=True)
            return None

    def save(self, state: UserJourneyState) -> UserJourneyState:
        stamped = replace(state, last_updated=self.clock())
        try:
            self.storage.set(JOURNEY_STATE_KEY, json.dumps(stamped.to_dict()))
        except PERSISTENCE_ERRORS:
            logger.error(f"Error saving journey state for {stamped.user_id}", exc_info=True)
        return stamped

    def get_or_create(self) -> UserJourneyState:
        state = self.load()
        if state is not None:
            return state

        state = self.create_new_state()
        legacy_email = self._legacy_email()
        if legacy_email:
            logger.info(f"Migrating legacy email into journey {state.user_id}")
            state = replace(state, profile=UserProfile(email=legacy_email))
            if self.derive is not None:
                state = self.derive(state)
        return self.save(state)

    def reset(self) -> UserJourneyState:
        try:
            self.storage.remove(JOURNEY_STATE_KEY)
            self.storage.remove(USER_EMAIL_KEY)
            if self.legacy_storage is not None:
                self.legacy_storage.remove(LEGACY_SESSION_EMAIL_KEY)
        except PERSISTENCE_ERRORS:
            logger.error("Error clearing persisted journey", exc_info=True)
        return self.create_new_state()

    def _legacy_email(self) -> Optional[str]:
        candidates = []
        if self.legacy_storage is not None:
            candidates.append((self.legacy_storage, LEGACY_SESSION_EMAIL_KEY))
        candidates.append((self.storage, USER_EMAIL_KEY))

        for storage, key in candidates:
            try:
                value = storage.get(key)
            except PERSISTENCE_ERRORS:
                logger.error(f"Error reading legacy key {key}", exc_info=True)
                continue
            if value:
                return value.strip().strip('"')
        return None


# =============================================================================
# BOUNDED LOGS
# =============================================================================


class _BoundedLog:
    """JSON list under one key, trimmed to the most recent max_entries."""

    key = ''

    def __init__(self, storage: KeyValueStorage, max_entries: int):
        self.storage = storage
        self.max_entries = max_entries

    def entries(self) -> list[dict]:
        try:
            raw = self.storage.get(self.key)
            entries = json.loads(raw) if raw else []
        except PERSISTENCE_ERRORS:
            logger.error(f"Error reading {self.key}, treating as empty", exc_info=True)
            return []
        return entries if isinstance(entries, list) else []

    def _append(self, entry: dict) -> None:
        entries = self.entries()
        entries.append(entry)
        if len(entries) > self.max_entries:
            # Oldest first out
            entries = entries[-self.max_entries:]
        try:
            self.storage.set(self.key, json.dumps(entries))
        except PERSISTENCE_ERRORS:
            logger.error(f"Error writing {self.key}", exc_info=True)


class AnalyticsLog(_BoundedLog):
    key = ANALYTICS_KEY

    def __init__(self, storage: KeyValueStorage, max_events: int = 100):
        super().__init__(storage, max_events)

    def append(self, event: JourneyEvent) -> None:
        self._append(event.to_dict())


class LeadLog(_BoundedLog):
    key = LEADS_KEY

    def __init__(self, storage: KeyValueStorage, max_entries: int = 500):
        super().__init__(storage, max_entries)

    def append(self, lead: LeadSubmission) -> None:
        self._append(lead.to_dict())
