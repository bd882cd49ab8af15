"""Lokální stav klienta v JSON souborech (obdoba localStorage prohlížeče)."""
import json
import logging
import os
from typing import Protocol

logger = logging.getLogger(__name__)


def load_json(path: str, what: str) -> dict:
    """Obsah souboru, nebo {} pokud chybí nebo je poškozený."""
    if not os.path.exists(path):
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        logger.warning("%s nelze načíst (%s), začínám od nuly", what, exc)
        return {}
    return data if isinstance(data, dict) else {}


def write_json(path: str, data: dict) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    tmp_path = f"{path}.tmp"
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(data, f)
    os.replace(tmp_path, path)


class CheckStamp(Protocol):
    def load(self) -> float | None: ...

    def save(self, timestamp: float) -> None: ...


class MemoryCheckStamp:
    def __init__(self, timestamp: float | None = None):
        self.timestamp = timestamp

    def load(self) -> float | None:
        return self.timestamp

    def save(self, timestamp: float) -> None:
        self.timestamp = timestamp


class FileCheckStamp:
    """Čas poslední úspěšné kontroly, přežije restart klienta."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> float | None:
        value = load_json(self.path, "Čas poslední kontroly").get("last_check")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        return None

    def save(self, timestamp: float) -> None:
        write_json(self.path, {"last_check": timestamp})
