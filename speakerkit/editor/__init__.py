"""Transcript editor state: reconciliation of remote results with local edits, view toggles."""
from speakerkit.editor.coordinator import EditorStateCoordinator
from speakerkit.editor.state import EditorPhase, EditorState, ViewMode

__all__ = ["EditorPhase", "EditorState", "EditorStateCoordinator", "ViewMode"]
