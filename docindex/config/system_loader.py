"""
DocIndex — YAML Configuration Loader

Loads:
- settings.yaml
- db.yaml

The packaged defaults can be replaced by pointing DOCINDEX_CONFIG_DIR
at a directory holding both files.

Usage:
    from docindex.config.system_loader import get_database_config
"""

import os
import yaml
from dotenv import load_dotenv

load_dotenv()

# -------------------------------------------------
# Base Config Path
# -------------------------------------------------

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def _config_dir() -> str:
    return os.getenv("DOCINDEX_CONFIG_DIR") or BASE_DIR


def _load_yaml(filename: str):
    path = os.path.join(_config_dir(), filename)

    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


# -------------------------------------------------
# Public Config Getters
# -------------------------------------------------

def get_database_config():
    return _load_yaml("db.yaml")


def get_system_config():
    return _load_yaml("settings.yaml")
