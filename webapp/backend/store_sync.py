"""
Persistence of the schedule store as a single document.

The store is written whole as {"data": store}. Transient write errors are
retried with exponential backoff; while one save is running, later saves
collapse into a single queued write (the most recent store wins).
"""
import copy
import hashlib
import json
import logging
import threading
import time
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from sqlalchemy.exc import OperationalError, SQLAlchemyError

from escala.schedule_manager import initialize_store, repair_store_doctors
from models import AppDocument, UserProfile

logger = logging.getLogger(__name__)

STATUS_IDLE = "idle"
STATUS_LOADING = "loading"
STATUS_SAVING = "saving"
STATUS_RETRYING = "retrying"
STATUS_ERROR = "error"

MAX_USERS_PER_PAGE = 100


def sanitize_for_storage(obj):
    """Drop None values at every level."""
    if isinstance(obj, list):
        return [sanitize_for_storage(v) for v in obj]
    if isinstance(obj, dict):
        return {k: sanitize_for_storage(v) for k, v in obj.items() if v is not None}
    return obj


def snapshot(obj) -> str:
    return json.dumps(obj, sort_keys=True, ensure_ascii=False)


def revision(obj) -> str:
    """Short content hash clients use to tell whether the store changed."""
    return hashlib.sha1(snapshot(obj).encode("utf-8")).hexdigest()


def decode_document(raw: Optional[dict]) -> Optional[dict]:
    """
    Store held by a raw document. Handles the wrapped {"data": ...} format,
    the older unwrapped layout with store fields at the root, and a document
    that only holds a dump of doctor records (the rest is reinitialized).
    """
    if not raw:
        return None

    if raw.get("data"):
        store = copy.deepcopy(raw["data"])
    elif any(k in raw for k in ("doctors", "months", "structure")):
        logger.warning("Store document in unwrapped format, migrating")
        store = copy.deepcopy(raw)
    else:
        doctors = [v for v in raw.values() if isinstance(v, dict) and v.get("name") and v.get("type")]
        if not doctors:
            logger.error("Could not recover any store data from document")
            return None
        logger.warning("Recovered %d doctors from raw document, reinitializing structure", len(doctors))
        store = {**initialize_store(), "doctors": copy.deepcopy(doctors)}

    company = store.get("company_settings")
    if company:
        if company.get("main_logo_base64") and not company.get("logo1"):
            company["logo1"] = company["main_logo_base64"]
        if company.get("secondary_logo_base64") and not company.get("logo2"):
            company["logo2"] = company["secondary_logo_base64"]
    return store


def is_retryable_error(error: Exception) -> bool:
    if isinstance(error, (OperationalError, TimeoutError, ConnectionError)):
        return True
    message = str(error).lower()
    return "network" in message or "timeout" in message


def profile_to_user(profile: UserProfile) -> dict:
    return {
        "id": profile.id,
        "username": profile.email or profile.username or "unknown",
        "name": profile.name or "Unknown",
        "role": profile.role or "Medico",
        "linked_doctor_id": profile.linked_doctor_id,
    }


class StoreSync:
    def __init__(
        self,
        session_factory: Callable,
        document_id: str = "schedule_store_v1",
        max_retries: int = 3,
        base_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.session_factory = session_factory
        self.document_id = document_id
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._sleep = sleep

        self.status = STATUS_IDLE
        self.error_message: Optional[str] = None
        self.retry_count = 0

        self._lock = threading.Lock()
        self._save_in_flight = False
        self._queued = None  # (clean store, snapshot)
        self._last_saved = ""
        self._last_applied = ""

    # --- reading ---------------------------------------------------------

    def _read(self):
        db = self.session_factory()
        try:
            doc = db.get(AppDocument, self.document_id)
            raw = copy.deepcopy(doc.data) if doc else None
            profiles = (
                db.query(UserProfile)
                .order_by(UserProfile.name)
                .limit(MAX_USERS_PER_PAGE)
                .all()
            )
            return raw, [profile_to_user(p) for p in profiles]
        finally:
            db.close()

    def _merge(self, store: dict, remote_users: List[dict]) -> dict:
        return {**store, "users": remote_users or store.get("users") or []}

    def load(self) -> dict:
        """Current store; a fresh seeded store when nothing has been saved yet."""
        self.status = STATUS_LOADING
        try:
            raw, remote_users = self._read()
        except SQLAlchemyError as e:
            logger.error("Store load failed: %s", e)
            self.status = STATUS_ERROR
            self.error_message = str(e)
            raise

        store = decode_document(raw)
        self.status = STATUS_IDLE
        if store is None:
            # saved right away so generated ids stay stable between loads
            logger.info("Store document %s not found, starting from seed data", self.document_id)
            store = repair_store_doctors(initialize_store())
            if raw is None:
                self.save(store)
            return self._merge(store, remote_users)
        return self._merge(repair_store_doctors(store), remote_users)

    def is_busy(self) -> bool:
        return self.status in (STATUS_SAVING, STATUS_LOADING, STATUS_RETRYING)

    def changes_since(self, since: Optional[str]) -> Tuple[Optional[dict], Optional[str]]:
        """
        (store, revision) of the stored document. The store is None when its
        revision equals `since`, when nothing is stored yet, or while a save
        is in progress (then `since` is handed back).
        """
        if self.is_busy():
            return None, since
        raw, remote_users = self._read()
        store = decode_document(raw)
        if store is None:
            return None, None
        current = revision(store)
        if current == since:
            return None, current
        return self._merge(repair_store_doctors(store), remote_users), current

    def pull(self) -> Optional[dict]:
        """The stored store when it changed since this instance last applied or saved it, else None."""
        store, current = self.changes_since(self._last_applied)
        if store is not None:
            self._last_applied = current
        return store

    # --- writing ---------------------------------------------------------

    def _write(self, clean: dict) -> None:
        db = self.session_factory()
        try:
            doc = db.get(AppDocument, self.document_id)
            if doc is None:
                doc = AppDocument(id=self.document_id)
                db.add(doc)
            doc.data = {"data": clean}
            doc.updated_at = datetime.utcnow()
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        finally:
            db.close()

    def _write_with_retry(self, clean: dict, stringified: str) -> None:
        for attempt in range(1, self.max_retries + 1):
            try:
                self._write(clean)
            except (SQLAlchemyError, OSError) as e:
                logger.error("Save attempt %d failed: %s", attempt, e)
                if not is_retryable_error(e) or attempt >= self.max_retries:
                    raise
                self.status = STATUS_RETRYING
                self.retry_count = attempt
                delay = self.base_delay * 2 ** (attempt - 1)
                logger.info("Retrying in %.1fs (attempt %d/%d)", delay, attempt + 1, self.max_retries)
                self._sleep(delay)
            else:
                self._last_saved = stringified
                self._last_applied = revision(clean)
                self.retry_count = 0
                return

    def save(self, store: dict) -> bool:
        """
        Persist the store. Returns False when nothing was written now: the
        store is identical to the last save, or it was queued behind a save
        in progress. Raises ValueError for a store without structure.
        """
        if not store.get("structure"):
            logger.error("Refusing to save a store without structure")
            raise ValueError("Store has no structure; refusing to save")

        clean = sanitize_for_storage(store)
        stringified = snapshot(clean)
        if stringified == self._last_saved:
            return False

        with self._lock:
            if self._save_in_flight:
                self._queued = (clean, stringified)
                logger.info("Save queued, another save is in progress")
                return False
            self._save_in_flight = True

        failure = None
        try:
            self.status = STATUS_SAVING
            self.error_message = None
            self._write_with_retry(clean, stringified)
            self.status = STATUS_IDLE
        except (SQLAlchemyError, OSError) as e:
            logger.error("Save failed: %s", e)
            self.status = STATUS_ERROR
            self.error_message = f"Erro ao salvar: {e}. Tente novamente."
            failure = e
        finally:
            with self._lock:
                self._save_in_flight = False
                queued, self._queued = self._queued, None

        if queued and queued[1] != self._last_saved:
            logger.info("Processing queued save")
            try:
                self.save(queued[0])
            except (SQLAlchemyError, OSError):
                # the failure of this call is the one reported
                if failure is None:
                    raise
        if failure is not None:
            raise failure
        return True

    def state(self) -> dict:
        return {
            "status": self.status,
            "error_message": self.error_message,
            "retry_count": self.retry_count,
        }
