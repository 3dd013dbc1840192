"""SQLite-based frame processing state tracker.

Tracks each frame of a sequence through the pipeline stages
(thresholded, labeled, clustered, downlinked) and keeps the error that
stopped a frame, so a run can be audited after the fact.
"""

import sqlite3
import logging
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional, Dict, List
import threading

logger = logging.getLogger(__name__)

STAGES = ('thresholded', 'labeled', 'clustered', 'downlinked')


class FrameProcessingTracker:
    """Tracks frame processing state through pipeline stages.

    **Pipeline Stages:**

    1. **Thresholded**: Optimal threshold found for the frame
    2. **Labeled**: Components extracted at the sequence threshold
    3. **Clustered**: K-means run and cluster density computed
    4. **Downlinked**: Frame copied to the downlink store

    **Database Schema:**

    SQLite table `frame_processing`, keyed by (sequence_id, frame_index):

    - frame_path: Source frame file
    - Status: pending, processing, completed, failed
    - Timestamps: When each stage completed (ISO format)
    - Metadata: threshold, num_particles, error_message

    **Thread Safety:**

    All methods are thread-safe via internal locking, so the threshold
    pass may report from worker threads.

    **Typical Usage:**

        with FrameProcessingTracker(db_path) as tracker:
            tracker.register_frame("run1", 12, frame_path)
            tracker.mark_stage_complete("run1", 12, "thresholded", threshold=87)
            stats = tracker.get_statistics("run1")
    """

    def __init__(self, db_path: Path | str):
        """Initialize tracker.

        Parameters
        ----------
        db_path : Path or str
            Path to SQLite database file. Created if it doesn't exist.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = None
        self._lock = threading.Lock()

        self._init_database()
        logger.info("Frame tracker initialized: %s", self.db_path)

    def _get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _init_database(self):
        """Create database schema if it doesn't exist."""
        conn = self._get_connection()

        with self._lock:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS frame_processing (
                    sequence_id TEXT NOT NULL,
                    frame_index INTEGER NOT NULL,
                    frame_path TEXT,

                    thresholded_at TEXT,
                    labeled_at TEXT,
                    clustered_at TEXT,
                    downlinked_at TEXT,

                    status TEXT DEFAULT 'pending',
                    error_message TEXT,

                    threshold INTEGER,
                    num_particles INTEGER,

                    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,

                    PRIMARY KEY (sequence_id, frame_index)
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_status ON frame_processing(status)")
            conn.commit()

    def register_frame(self, sequence_id: str, frame_index: int,
                       frame_path: Optional[Path] = None) -> bool:
        """Register a frame for tracking.

        Returns
        -------
        bool
            True if newly registered, False if already in the database.
        """
        conn = self._get_connection()

        with self._lock:
            cursor = conn.execute(
                "SELECT frame_index FROM frame_processing WHERE sequence_id = ? AND frame_index = ?",
                (sequence_id, frame_index),
            )
            if cursor.fetchone():
                return False

            conn.execute("""
                INSERT INTO frame_processing (sequence_id, frame_index, frame_path, status)
                VALUES (?, ?, ?, 'pending')
            """, (sequence_id, frame_index, str(frame_path) if frame_path else None))
            conn.commit()

            logger.debug("Registered frame %s:%d", sequence_id, frame_index)
            return True

    def mark_stage_complete(self, sequence_id: str, frame_index: int, stage: str,
                            threshold: Optional[int] = None,
                            num_particles: Optional[int] = None,
                            error: Optional[str] = None):
        """Mark a pipeline stage as complete or failed for a frame.

        Parameters
        ----------
        sequence_id : str
            Sequence the frame belongs to.
        frame_index : int
            Frame index (must be registered).
        stage : str
            One of 'thresholded', 'labeled', 'clustered', 'downlinked'.
        threshold : int, optional
            Per-frame optimal threshold (for 'thresholded').
        num_particles : int, optional
            Components found (for 'labeled').
        error : str, optional
            If provided, the frame is marked 'failed' with this message.

        Raises
        ------
        ValueError
            If stage is not a valid pipeline stage.
        """
        if stage not in STAGES:
            raise ValueError(f"Invalid stage: {stage}. Must be one of {list(STAGES)}")

        if error:
            new_status = 'failed'
        elif stage == 'clustered':
            new_status = 'completed'
        else:
            new_status = 'processing'

        now = datetime.now(timezone.utc).isoformat()
        if stage == 'downlinked' and not error:
            # Transmission does not clear an earlier analysis failure
            assignments = [f"{stage}_at = ?", "updated_at = ?"]
            params = [now, now]
        else:
            assignments = [f"{stage}_at = ?", "status = ?", "error_message = ?", "updated_at = ?"]
            params = [None if error else now, new_status, error, now]
        if threshold is not None:
            assignments.append("threshold = ?")
            params.append(threshold)
        if num_particles is not None:
            assignments.append("num_particles = ?")
            params.append(num_particles)

        conn = self._get_connection()
        with self._lock:
            conn.execute(
                f"UPDATE frame_processing SET {', '.join(assignments)} "
                "WHERE sequence_id = ? AND frame_index = ?",
                params + [sequence_id, frame_index],
            )
            conn.commit()

        logger.debug("Marked %s %s: %s:%d", stage, new_status, sequence_id, frame_index)

    def get_frame_status(self, sequence_id: str, frame_index: int) -> Optional[Dict]:
        """Complete processing record for a frame, or None if unknown."""
        conn = self._get_connection()

        with self._lock:
            cursor = conn.execute(
                "SELECT * FROM frame_processing WHERE sequence_id = ? AND frame_index = ?",
                (sequence_id, frame_index),
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def get_failed_frames(self, sequence_id: str) -> List[Dict]:
        """Failed frames of a sequence, ordered by frame index."""
        conn = self._get_connection()

        with self._lock:
            cursor = conn.execute("""
                SELECT * FROM frame_processing
                WHERE sequence_id = ? AND status = 'failed'
                ORDER BY frame_index
            """, (sequence_id,))
            return [dict(row) for row in cursor.fetchall()]

    def get_statistics(self, sequence_id: Optional[str] = None) -> Dict:
        """Summary of processing progress.

        Returns
        -------
        dict
            `total`, `thresholded`, `labeled`, `clustered`, `downlinked`,
            `completed`, `failed`, `processing`, `pending`, `total_particles`
        """
        conn = self._get_connection()

        where_clause = "WHERE sequence_id = ?" if sequence_id else ""
        params = (sequence_id,) if sequence_id else ()

        with self._lock:
            cursor = conn.execute(f"""
                SELECT
                    COUNT(*) as total,
                    COUNT(thresholded_at) as thresholded,
                    COUNT(labeled_at) as labeled,
                    COUNT(clustered_at) as clustered,
                    COUNT(downlinked_at) as downlinked,
                    SUM(CASE WHEN status = 'completed' THEN 1 ELSE 0 END) as completed,
                    SUM(CASE WHEN status = 'failed' THEN 1 ELSE 0 END) as failed,
                    SUM(CASE WHEN status = 'processing' THEN 1 ELSE 0 END) as processing,
                    SUM(CASE WHEN status = 'pending' THEN 1 ELSE 0 END) as pending,
                    SUM(num_particles) as total_particles
                FROM frame_processing
                {where_clause}
            """, params)
            row = cursor.fetchone()
            return dict(row) if row else {}

    def reset_sequence(self, sequence_id: str) -> int:
        """Forget every frame of a sequence so a rerun starts clean.

        Returns
        -------
        int
            Number of frame records removed.
        """
        conn = self._get_connection()

        with self._lock:
            cursor = conn.execute(
                "DELETE FROM frame_processing WHERE sequence_id = ?", (sequence_id,)
            )
            conn.commit()

        if cursor.rowcount:
            logger.info("Reset %d tracked frame(s) for sequence %s", cursor.rowcount, sequence_id)
        return cursor.rowcount

    def close(self):
        """Close database connection. Safe to call multiple times."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
