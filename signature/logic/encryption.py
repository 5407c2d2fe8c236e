# signature/logic/encryption.py
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import List

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)


class KeyRing:
    """
    Fernet key ring persisted as a small JSON file::

        {"current": "<key>", "legacy": ["<old key>", ...]}

    - the current key is used for ENCRYPT,
    - legacy keys are used only for DECRYPT (after a rotation).
    The file is created with a fresh key on first use.
    """

    def __init__(self, key_file: Path | str) -> None:
        self._path = Path(key_file)
        self._ferns: List[Fernet] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> List[Fernet]:
        if self._ferns is not None:
            return self._ferns

        if not self._path.exists():
            self._write({"current": Fernet.generate_key().decode("ascii"), "legacy": []})
            logger.info("Created artifact key ring at %s", self._path)

        raw = json.loads(self._path.read_text(encoding="utf-8"))
        ferns = [Fernet(raw["current"].encode("ascii"))]
        for k in raw.get("legacy", []):
            try:
                ferns.append(Fernet(k.encode("ascii")))
            except ValueError:
                # ignore malformed legacy entries
                logger.warning("Skipping malformed legacy key in %s", self._path)
        self._ferns = ferns
        return ferns

    def _write(self, data: dict) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data), encoding="utf-8")
        if os.name != "nt":
            os.chmod(self._path, 0o600)

    def rotate(self) -> None:
        """Make a new key current; the previous one moves to the legacy list."""
        raw = json.loads(self._path.read_text(encoding="utf-8")) if self._path.exists() else {}
        legacy = list(raw.get("legacy", []))
        if raw.get("current"):
            legacy.insert(0, raw["current"])
        self._write({"current": Fernet.generate_key().decode("ascii"), "legacy": legacy})
        self._ferns = None

    def encrypt(self, data: bytes) -> bytes:
        return self._load()[0].encrypt(data)

    def decrypt(self, token: bytes) -> bytes:
        """
        Try the current key first, then legacy keys.
        Raises InvalidToken if none matches.
        """
        for f in self._load():
            try:
                return f.decrypt(token)
            except InvalidToken:
                continue
        raise InvalidToken("Unable to decrypt artifact image")
