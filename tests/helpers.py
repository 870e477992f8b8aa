from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

DISTRIBUTOR_KEY = "distributor-test-key"

# Smallest payload the mp3 validator accepts (ID3 magic).
FAKE_MP3 = b"ID3\x03\x00\x00\x00\x00\x00\x00" + b"\x00" * 2048


@dataclass
class ApiUser:
    id: str
    username: str
    token: str

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}
