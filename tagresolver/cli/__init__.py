"""Command-line tools for tagresolver.

- ``python -m tagresolver.cli import tracks.json`` -- load tracks into the
  SQLite library.
- ``python -m tagresolver.cli find`` -- resolve candidates for library
  tracks, auto-apply confident matches, and write the rest to a pending
  file.
- ``python -m tagresolver.cli apply pending.json selections.json`` --
  apply the candidates a user picked from the pending file.
"""
