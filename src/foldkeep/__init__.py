"""Persistent text folding.

Layout:
    ~/.foldkeep/
    ├── foldkeep.toml                  # Optional configuration
    └── folds/
        └── !home!u!notes.txt          # Fold set of /home/u/notes.txt

A fold set file is a coding comment plus one S-expression of
``(start end)`` character offsets, e.g. ``((120 340) (512 600))``.
"""
