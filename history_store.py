"""
Cutting plan history persisted in a key-value store.
Keeps the most recent plans and degrades gracefully when the store is full.
"""

import errno
import json
import logging
import os
import tempfile
import time
from datetime import datetime
from typing import List, Dict, Any, Optional, Tuple
from data_models import Piece, Panel, PlacedPiece, StorageQuotaExceeded

logger = logging.getLogger(__name__)

HISTORY_KEY = "cutPlanHistory"
HISTORY_MAX_ENTRIES = 20
HISTORY_FALLBACK_ENTRIES = 10
DEFAULT_PROJECT_TITLE = "Untitled project"


class MemoryStore:
    """In-process key-value store with an optional size quota."""

    def __init__(self, max_bytes: Optional[int] = None):
        self.max_bytes = max_bytes
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.max_bytes is not None and len(value.encode('utf-8')) > self.max_bytes:
            raise StorageQuotaExceeded(f"Value for '{key}' exceeds {self.max_bytes} bytes")
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """
    Key-value store backed by a single JSON file.

    Args:
        path: File holding all keys
        max_bytes: Optional size quota per value
    """

    def __init__(self, path: str, max_bytes: Optional[int] = None):
        self.path = path
        self.max_bytes = max_bytes

    def _read_all(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as file:
                return json.load(file)
        except (OSError, ValueError) as e:
            logger.error(f"Could not read store file {self.path}: {e}")
            return {}

    def _write_all(self, data: Dict[str, str]) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        # Write beside the target and swap it in, so a failed write keeps the old file
        fd, temp_path = tempfile.mkstemp(dir=directory or None, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as file:
                json.dump(data, file)
            os.replace(temp_path, self.path)
        except OSError as e:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            if e.errno == errno.ENOSPC:
                raise StorageQuotaExceeded(f"No space left for {self.path}") from e
            raise

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        if self.max_bytes is not None and len(value.encode('utf-8')) > self.max_bytes:
            raise StorageQuotaExceeded(f"Value for '{key}' exceeds {self.max_bytes} bytes")
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


def build_history_entry(session, entry_id: Optional[int] = None,
                        now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Build the persisted record for the session's current layout.

    Args:
        session: PackingSession holding generated layouts
        entry_id: Record identifier, milliseconds since the epoch by default
        now: Timestamp of the record

    Returns:
        JSON-serializable history entry
    """
    config = session.config
    layout = session.layout_set.current if session.layout_set is not None else None
    panels = layout.panels if layout is not None else []
    now = now or datetime.now()

    return {
        'id': entry_id if entry_id is not None else int(time.time() * 1000),
        'date': now.isoformat(),
        'projectTitle': session.project_title or DEFAULT_PROJECT_TITLE,
        'panelWidth': config.panel_width,
        'panelHeight': config.panel_height,
        'panelThickness': config.panel_thickness,
        'bladeThickness': config.blade_thickness,
        'panelCost': config.panel_cost,
        'safetyMargin': config.safety_margin,
        'pieces': [piece.to_dict() for piece in session.pieces],
        'panels': [panel.to_dict() for panel in panels],
        'totalPanels': len(panels),
        'totalPieces': sum(len(panel.pieces) for panel in panels),
    }


def pieces_from_history(entry: Dict[str, Any]) -> List[Piece]:
    return [Piece.from_dict(data) for data in entry.get('pieces', [])]


def panels_from_history(entry: Dict[str, Any]) -> List[Panel]:
    """
    Rebuild panels from a history entry.
    Free space pools are not persisted, so restored panels expose none.
    """
    margin = float(entry.get('safetyMargin') or 0)
    full_width = entry.get('panelWidth')
    full_height = entry.get('panelHeight')

    panels = []
    for index, data in enumerate(entry.get('panels', [])):
        panel_margin = float(data.get('safetyMargin', margin))
        panel_full_width = data.get('fullWidth', full_width)
        panel_full_height = data.get('fullHeight', full_height)
        panel = Panel(
            panel_number=data.get('panelNumber', index + 1),
            width=data.get('width', panel_full_width - 2 * panel_margin),
            height=data.get('height', panel_full_height - 2 * panel_margin),
            safety_margin=panel_margin,
            full_width=panel_full_width,
            full_height=panel_full_height,
        )
        panel.pieces = [PlacedPiece.from_dict(piece) for piece in data.get('pieces', [])]
        panel.free_spaces = []
        panels.append(panel)
    return panels


class HistoryStore:
    """
    Most-recent-first list of saved cutting plans.

    Args:
        store: Key-value backend (MemoryStore, JsonFileStore)
        key: Key holding the serialized history
        max_entries: Number of entries kept, oldest evicted first
        fallback_entries: Entries kept when the store rejects a write
    """

    def __init__(self, store, key: str = HISTORY_KEY, max_entries: int = HISTORY_MAX_ENTRIES,
                 fallback_entries: int = HISTORY_FALLBACK_ENTRIES):
        self.store = store
        self.key = key
        self.max_entries = max_entries
        self.fallback_entries = fallback_entries

    def load(self) -> List[Dict[str, Any]]:
        raw = self.store.get(self.key)
        if not raw:
            return []
        try:
            history = json.loads(raw)
        except ValueError as e:
            logger.error(f"Stored history is not valid JSON, ignoring it: {e}")
            return []
        if not isinstance(history, list):
            logger.error("Stored history is not a list, ignoring it")
            return []
        return history

    def save(self, history: List[Dict[str, Any]]) -> Optional[str]:
        """
        Write the history, truncating once if the store is full.

        Returns:
            Warning message if entries were dropped or nothing could be saved
        """
        try:
            self.store.set(self.key, json.dumps(history))
            return None
        except StorageQuotaExceeded as e:
            logger.warning(f"History store full ({e}), keeping the {self.fallback_entries} most recent plans")
        except OSError as e:
            logger.error(f"History could not be written: {e}")
            return "The history could not be saved."

        try:
            self.store.set(self.key, json.dumps(history[:self.fallback_entries]))
        except (StorageQuotaExceeded, OSError) as e:
            logger.warning(f"History could not be saved after truncation: {e}")
            return "Storage is full: this plan could not be saved to the history."

        return (f"Storage is full: the history was reduced to the "
                f"{self.fallback_entries} most recent plans.")

    def add(self, entry: Dict[str, Any]) -> Tuple[List[Dict[str, Any]], Optional[str]]:
        """
        Insert an entry at the front of the history.

        Returns:
            Tuple of (history as saved in memory, warning message or None)
        """
        history = self.load()
        existing_ids = {item.get('id') for item in history if item.get('id') is not None}
        if entry['id'] in existing_ids:
            entry = dict(entry, id=max(existing_ids) + 1)

        history.insert(0, entry)
        if len(history) > self.max_entries:
            history = history[:self.max_entries]

        warning = self.save(history)
        return history, warning

    def add_entry(self, session, now: Optional[datetime] = None) -> Tuple[Dict[str, Any], Optional[str]]:
        """Record the session's current plan. Never raises on storage failures."""
        entry = build_history_entry(session, now=now)
        history, warning = self.add(entry)
        logger.info(f"Saved plan '{entry['projectTitle']}' to history ({len(history)} entries)")
        return history[0], warning

    def find(self, entry_id: int) -> Optional[Dict[str, Any]]:
        for entry in self.load():
            if entry.get('id') == entry_id:
                return entry
        return None

    def clear(self) -> None:
        self.store.remove(self.key)
