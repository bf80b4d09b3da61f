"""
Session Manager - Editing session, persistence and change notification.

This module implements:
- Single editing session (one graph open at a time) around a DiagramEditor
- JSON file persistence and optional autosave
- Change callbacks for real-time sync (WebSocket broadcasts)

All graph access goes through this one object, which the backend only
touches from the event loop, so edits are never interleaved.
"""

import logging
from pathlib import Path
from typing import Callable, Optional, TypeVar

from arcio import DiagramEditor, EditorSettings, Graph, load_settings
from arcio.persistence import load_graph, save_graph

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionManager:
    """
    Manages the editing session's state and persistence.

    Features:
    - Undo/redo, clipboard and snapping delegated to DiagramEditor
    - Dirty tracking for unsaved changes
    - Change callbacks for real-time sync
    - Save callbacks for external integrations
    """

    def __init__(self, settings: Optional[EditorSettings] = None):
        self._settings = settings or load_settings()
        self._editor = DiagramEditor(self._settings)
        self._file_path: Optional[Path] = None
        self._dirty = False  # True if unsaved changes exist
        self._on_change_callbacks: list[Callable] = []
        self._on_save_callbacks: list[Callable] = []  # Called after successful save

    # --- Properties ---

    @property
    def editor(self) -> DiagramEditor:
        """Get the editing session."""
        return self._editor

    @property
    def settings(self) -> EditorSettings:
        return self._settings

    @property
    def file_path(self) -> Optional[Path]:
        """Get the current file path."""
        return self._file_path

    @property
    def is_dirty(self) -> bool:
        """Check if there are unsaved changes."""
        return self._dirty

    # --- Change Callbacks ---

    def on_change(self, callback: Callable):
        """Register a callback for graph changes."""
        self._on_change_callbacks.append(callback)

    def _notify_change(self):
        """Autosave, then notify all registered callbacks of a change."""
        self._autosave()
        for callback in self._on_change_callbacks:
            callback()

    def _autosave(self):
        path = self._settings.autosave_path
        if path is None:
            return
        try:
            save_graph(self._editor.graph, path)
        except OSError as e:
            logger.warning("Autosave to %s failed: %s", path, e)

    # --- Save Callbacks ---

    def on_save(self, callback: Callable):
        """Register a callback for graph saves.

        Callback receives (path: Path, graph_info: dict) where graph_info contains:
        - node_count: number of nodes
        - edge_count: number of edges
        """
        self._on_save_callbacks.append(callback)

    def _notify_save(self, path: Path):
        """Notify all registered callbacks of a successful save."""
        graph_info = {
            "node_count": len(self._editor.graph.nodes),
            "edge_count": len(self._editor.graph.edges),
        }
        for callback in self._on_save_callbacks:
            try:
                callback(path, graph_info)
            except Exception:
                # Don't let callback failures affect save operation
                logger.exception("Save callback %r failed", callback)

    # --- Editing ---

    def apply(self, action: Callable[[DiagramEditor], T], notify: bool = True) -> T:
        """
        Run an editing action against the session.

        Args:
            action: Callable receiving the DiagramEditor
            notify: False for transient updates (drag frames) that must not
                trigger broadcasts or autosave

        Returns:
            Whatever the action returns
        """
        result = action(self._editor)
        if notify:
            self._dirty = True
            self._notify_change()
        return result

    # --- File Operations ---

    def new_graph(self) -> Graph:
        """Start a new empty graph."""
        self._editor = DiagramEditor(self._settings)
        self._file_path = None
        self._dirty = False
        self._notify_change()
        return self._editor.graph

    def open_graph(self, file_path: str | Path) -> Graph:
        """Open a graph from a JSON file."""
        path = Path(file_path)
        graph = load_graph(path)
        self._editor.load(graph)
        graph = self._editor.graph
        self._file_path = path
        self._dirty = False
        logger.info("Opened %s (%d nodes, %d edges)", path, len(graph.nodes), len(graph.edges))
        self._notify_change()
        return graph

    def save_graph(self, file_path: Optional[str | Path] = None) -> Path:
        """
        Save the graph to a JSON file.

        If file_path is provided, save to that path (Save As).
        Otherwise, save to the current file_path.
        """
        if file_path:
            path = Path(file_path)
        elif self._file_path:
            path = self._file_path
        else:
            raise ValueError("No file path specified and no current file path")

        save_graph(self._editor.graph, path)
        self._file_path = path
        self._dirty = False

        # Notify save callbacks (for external integrations)
        self._notify_save(path)
        return path

    def get_state(self) -> dict:
        """Get the full current state for API responses."""
        return {
            "graph": self._editor.graph.to_json_dict(),
            "file_path": str(self._file_path) if self._file_path else None,
            "is_dirty": self._dirty,
            "can_undo": self._editor.can_undo,
            "can_redo": self._editor.can_redo,
            "guides": self._editor.guides.to_dict(),
        }


# Global instance for the application
session_manager = SessionManager()
