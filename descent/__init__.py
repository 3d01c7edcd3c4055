"""
The Final Descent engine.

A turn-based RPG combat and run-progression simulator. The source folder
holds the top-level packages ``core``, ``entities``, ``effects``,
``actions``, ``combat``, ``items`` and ``world``, plus the console demo in
``main.py``.
"""
