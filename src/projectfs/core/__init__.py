"""Models, errors, constants, serialization and undo/redo history."""
