#!/usr/bin/env python3
"""
paths.py
-------------------
Path constants for the Showbook project.

All paths are Path objects relative to the project root:
    ROOT/
    ├── showbook/      # Package source (migrations live inside)
    ├── data/          # SQLite database and markdown exports
    └── logs/          # Application logs

Every default here can be overridden through ShowbookConfig
(config file or SHOWBOOK_* environment variables).
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from pathlib import Path

# ----- Project directory -----
PACKAGE_DIR: Path = Path(__file__).resolve().parent.parent
ROOT: Path = PACKAGE_DIR.parent

# --- Data ---
DATA_DIR = ROOT / "data"
DB_PATH = DATA_DIR / "showbook.db"
EXPORT_DIR = DATA_DIR / "exports"

# --- Database ---
ALEMBIC_DIR = PACKAGE_DIR / "migrations"
ALEMBIC_INI = ROOT / "alembic.ini"

# --- Config & Logs ---
CONFIG_PATH = ROOT / "showbook.yaml"
LOG_DIR = ROOT / "logs"
