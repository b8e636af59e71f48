# adaptive_perf/optimization_modules/profile_store.py

import asyncio
import functools
import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar

from ..models.datatypes import HistoryEntry, OptimizationProfile
from ..models.exceptions import InvalidInputError, TransientStorageError
from ..models.serialization import from_dict, to_dict
from ..protocols import ProfileRepository

logger_profile_store = logging.getLogger(__name__)

DEFAULT_DB_PATH = "data/adaptive_perf.db"
DEFAULT_HISTORY_LOAD_LIMIT = 50
IN_MEMORY_DB = ":memory:"

T = TypeVar("T")


class ProfileStore(ProfileRepository):
    """
    SQLite-backed store for optimization profiles.

    The profile document (everything except history) lives in ``profiles`` and
    is overwritten on save. History lives in the append-only
    ``optimization_history`` table and only ever grows through inserts, so a
    concurrent document save can never drop an entry.
    """

    def __init__(self):
        self.db_path: Optional[Path] = None
        self.history_load_limit: int = DEFAULT_HISTORY_LOAD_LIMIT
        self._lock = asyncio.Lock()
        self._connection: Optional[sqlite3.Connection] = None
        self._controller: Optional[Any] = None
        self._in_memory = False

    async def initialize(self, config: Dict[str, Any], controller: Any) -> bool:
        """Open the database and create the schema."""
        self._controller = controller
        storage_config = config.get("storage", {})

        db_path_str = storage_config.get("db_path", DEFAULT_DB_PATH)
        if not db_path_str:
            logger_profile_store.error("ProfileStore: db_path not specified in [storage] configuration.")
            return False

        limit = storage_config.get("history_load_limit", DEFAULT_HISTORY_LOAD_LIMIT)
        if not isinstance(limit, int) or limit <= 0:
            logger_profile_store.warning(f"ProfileStore: invalid history_load_limit {limit!r}, using {DEFAULT_HISTORY_LOAD_LIMIT}.")
            limit = DEFAULT_HISTORY_LOAD_LIMIT
        self.history_load_limit = limit

        self._in_memory = db_path_str == IN_MEMORY_DB
        if self._in_memory:
            self.db_path = None
            connect_target = IN_MEMORY_DB
        else:
            engine_root = getattr(controller, "engine_root_path", None) or Path.cwd()
            self.db_path = (Path(engine_root) / db_path_str).resolve()
            connect_target = str(self.db_path)
        logger_profile_store.info(f"ProfileStore initializing with DB path: {connect_target}")

        try:
            if self.db_path is not None:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self._connection = sqlite3.connect(connect_target, check_same_thread=False)
            self._connection.row_factory = sqlite3.Row

            async with self._lock:
                await self._run(self._create_schema)

            logger_profile_store.info("ProfileStore initialized successfully.")
            return True

        except (sqlite3.Error, OSError, TransientStorageError) as e:
            logger_profile_store.exception(f"ProfileStore: error during initialization: {e}")
            if self._connection:
                self._connection.close()
                self._connection = None
            return False

    def _create_schema(self) -> None:
        conn = self._require_connection()
        conn.execute("""
            CREATE TABLE IF NOT EXISTS profiles (
                subject_id TEXT PRIMARY KEY,
                profile_id TEXT NOT NULL,
                document TEXT NOT NULL,
                last_optimization_check REAL NOT NULL,
                updated_at REAL NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS optimization_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                subject_id TEXT NOT NULL,
                timestamp REAL NOT NULL,
                entry TEXT NOT NULL
            )
        """)
        conn.execute("CREATE INDEX IF NOT EXISTS idx_history_subject ON optimization_history(subject_id, id)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_profiles_check ON profiles(last_optimization_check)")
        conn.commit()

    def _require_connection(self) -> sqlite3.Connection:
        if self._connection is None:
            raise TransientStorageError("Profile store is not initialized")
        return self._connection

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        """Run a blocking sqlite call in the default executor, wrapping sqlite errors."""
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, functools.partial(func, *args))
        except sqlite3.Error as e:
            if self._connection is not None:
                try:
                    self._connection.rollback()
                except sqlite3.Error as rb_e:
                    logger_profile_store.error(f"Rollback failed: {rb_e}")
            raise TransientStorageError(f"Storage operation {func.__name__} failed: {e}") from e

    # --- Serialization ---

    @staticmethod
    def _document(profile: OptimizationProfile) -> str:
        doc = to_dict(profile)
        doc.pop("optimization_history", None)
        return json.dumps(doc, sort_keys=True)

    def _profile_from_row(self, row: sqlite3.Row, history_rows: List[sqlite3.Row]) -> OptimizationProfile:
        try:
            doc = json.loads(row["document"])
            profile = from_dict(OptimizationProfile, doc)
            history = [from_dict(HistoryEntry, json.loads(h["entry"])) for h in reversed(history_rows)]
        except (json.JSONDecodeError, InvalidInputError) as e:
            raise TransientStorageError(f"Stored profile for '{row['subject_id']}' is unreadable: {e}") from e
        profile.optimization_history = history
        # Column is authoritative: it is only ever advanced with MAX()
        profile.last_optimization_check = max(profile.last_optimization_check, row["last_optimization_check"])
        return profile

    # --- Blocking operations (executor side) ---

    def _get_sync(self, subject_id: str, history_limit: int) -> Optional[OptimizationProfile]:
        conn = self._require_connection()
        row = conn.execute(
            "SELECT subject_id, document, last_optimization_check FROM profiles WHERE subject_id = ?",
            (subject_id,),
        ).fetchone()
        if row is None:
            return None
        history_rows = conn.execute(
            "SELECT entry FROM optimization_history WHERE subject_id = ? ORDER BY id DESC LIMIT ?",
            (subject_id, history_limit),
        ).fetchall()
        return self._profile_from_row(row, history_rows)

    def _create_sync(self, profile: OptimizationProfile) -> bool:
        conn = self._require_connection()
        cursor = conn.execute(
            "INSERT OR IGNORE INTO profiles (subject_id, profile_id, document, last_optimization_check, updated_at) "
            "VALUES (?, ?, ?, ?, ?)",
            (profile.subject_id, profile.profile_id, self._document(profile),
             profile.last_optimization_check, profile.updated_at),
        )
        created = cursor.rowcount > 0
        if created:
            for entry in profile.optimization_history:
                self._insert_history(conn, profile.subject_id, entry)
        conn.commit()
        return created

    def _save_sync(self, profile: OptimizationProfile, entry: Optional[HistoryEntry] = None) -> None:
        conn = self._require_connection()
        cursor = conn.execute(
            "UPDATE profiles SET document = ?, updated_at = ?, "
            "last_optimization_check = MAX(last_optimization_check, ?) WHERE subject_id = ?",
            (self._document(profile), profile.updated_at, profile.last_optimization_check, profile.subject_id),
        )
        if cursor.rowcount == 0:
            conn.rollback()
            raise TransientStorageError(f"Cannot save profile '{profile.subject_id}': no stored profile")
        if entry is not None:
            # Same transaction as the document update
            self._insert_history(conn, profile.subject_id, entry)
        conn.commit()

    @staticmethod
    def _insert_history(conn: sqlite3.Connection, subject_id: str, entry: HistoryEntry) -> None:
        conn.execute(
            "INSERT INTO optimization_history (subject_id, timestamp, entry) VALUES (?, ?, ?)",
            (subject_id, entry.timestamp, json.dumps(to_dict(entry), sort_keys=True)),
        )

    def _append_history_sync(self, subject_id: str, entry: HistoryEntry) -> None:
        conn = self._require_connection()
        self._insert_history(conn, subject_id, entry)
        conn.commit()

    def _list_subject_ids_sync(self) -> List[str]:
        conn = self._require_connection()
        return [row["subject_id"] for row in conn.execute("SELECT subject_id FROM profiles ORDER BY subject_id")]

    def _count_sync(self) -> Dict[str, int]:
        conn = self._require_connection()
        profiles = conn.execute("SELECT COUNT(*) FROM profiles").fetchone()[0]
        history = conn.execute("SELECT COUNT(*) FROM optimization_history").fetchone()[0]
        return {"profiles": profiles, "history_entries": history}

    def _clear_sync(self) -> None:
        conn = self._require_connection()
        conn.execute("DELETE FROM optimization_history")
        conn.execute("DELETE FROM profiles")
        conn.commit()

    # --- ProfileRepository ---

    async def get_profile(self, subject_id: str, history_limit: Optional[int] = None) -> Optional[OptimizationProfile]:
        limit = history_limit if history_limit is not None else self.history_load_limit
        async with self._lock:
            return await self._run(self._get_sync, subject_id, limit)

    async def create_profile(self, profile: OptimizationProfile) -> bool:
        async with self._lock:
            created = await self._run(self._create_sync, profile)
        if created:
            logger_profile_store.debug(f"Stored new profile for subject '{profile.subject_id}'")
        return created

    async def save_profile(self, profile: OptimizationProfile, entry: Optional[HistoryEntry] = None) -> None:
        """Overwrite the document and, when given, append ``entry`` in the same commit."""
        async with self._lock:
            await self._run(self._save_sync, profile, entry)

    async def append_history(self, subject_id: str, entry: HistoryEntry) -> None:
        async with self._lock:
            await self._run(self._append_history_sync, subject_id, entry)
        logger_profile_store.debug(f"Appended history entry '{entry.action}' for subject '{subject_id}'")

    async def list_subject_ids(self) -> List[str]:
        async with self._lock:
            return await self._run(self._list_subject_ids_sync)

    async def count(self) -> Dict[str, int]:
        async with self._lock:
            return await self._run(self._count_sync)

    # --- OptimizationComponent ---

    async def process(self, input_state: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """The store reacts to explicit calls; nothing to do per cycle."""
        return None

    async def reset(self) -> None:
        """Delete every stored profile and history entry."""
        if self._connection is None:
            logger_profile_store.error("ProfileStore: Cannot reset, database not initialized.")
            return
        logger_profile_store.warning("ProfileStore: Resetting - clearing all profiles and history!")
        async with self._lock:
            await self._run(self._clear_sync)
        logger_profile_store.info("ProfileStore reset complete.")

    async def get_status(self) -> Dict[str, Any]:
        status: Dict[str, Any] = {
            "component": "ProfileStore", "status": "uninitialized",
            "profile_count": 0, "history_entry_count": 0, "db_size_mb": 0.0,
            "db_path": IN_MEMORY_DB if self._in_memory else (str(self.db_path) if self.db_path else None),
        }
        if self._connection is None:
            return status
        try:
            counts = await self.count()
        except TransientStorageError as e:
            logger_profile_store.exception(f"ProfileStore get_status failed: {e}")
            status["status"] = "error"
            status["error_message"] = str(e)
            return status
        status["status"] = "operational"
        status["profile_count"] = counts["profiles"]
        status["history_entry_count"] = counts["history_entries"]
        if self.db_path is not None:
            try:
                if self.db_path.exists():
                    status["db_size_mb"] = round(self.db_path.stat().st_size / (1024 * 1024), 3)
            except OSError as e_stat:
                logger_profile_store.warning(f"Could not get DB file size: {e_stat}")
                status["db_size_mb"] = -1.0
        return status

    async def shutdown(self) -> None:
        """Close the database connection."""
        logger_profile_store.info("ProfileStore shutting down...")
        async with self._lock:
            if self._connection:
                try:
                    self._connection.commit()
                    self._connection.close()
                    logger_profile_store.info("ProfileStore database connection closed.")
                except sqlite3.Error as e:
                    logger_profile_store.exception(f"ProfileStore: Error closing database connection: {e}")
            self._connection = None
