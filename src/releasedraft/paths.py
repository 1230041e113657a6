"""Locations of the data files shipped inside the package."""

from __future__ import annotations

from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parent
DATA_DIR = PACKAGE_ROOT / "data"
CONFIG_DEFINITION_PATH = DATA_DIR / "config-def.yaml"
MAPPING_SCHEMA_PATH = DATA_DIR / "mapping-schema.yaml"
BUILTIN_MAPPINGS_DIR = DATA_DIR / "mappings"
VERB_PAST_TENSES_PATH = DATA_DIR / "verb_past_tenses.yaml"
DEFAULT_USER_CONFIG = Path("releasedraft.yml")

__all__ = [
    "BUILTIN_MAPPINGS_DIR",
    "CONFIG_DEFINITION_PATH",
    "DATA_DIR",
    "DEFAULT_USER_CONFIG",
    "MAPPING_SCHEMA_PATH",
    "PACKAGE_ROOT",
    "VERB_PAST_TENSES_PATH",
]
