"""
Ledger transaction model.

Values on the wire are base64url without padding, the same encoding the
gateway uses for ids, owners, signatures, data and tag names/values.
"""

from __future__ import annotations

import base64
import hashlib
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

FORMAT = 2


def b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def b64url_decode(s: str) -> bytes:
    pad = "=" * (-len(s) % 4)
    return base64.urlsafe_b64decode(s + pad)


@dataclass(frozen=True)
class Tag:
    name: str
    value: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "name": b64url_encode(self.name.encode("utf-8")),
            "value": b64url_encode(self.value.encode("utf-8")),
        }


@dataclass
class Transaction:
    """A value transfer and/or data transaction, unsigned until `id` is set."""

    owner: str = ""
    target: str = ""
    quantity: str = "0"
    data: bytes = b""
    reward: str = "0"
    last_tx: str = ""
    tags: List[Tag] = field(default_factory=list)
    id: Optional[str] = None
    signature: Optional[str] = None

    def add_tag(self, name: str, value: str) -> None:
        self.tags.append(Tag(str(name), str(value)))

    def get_tag(self, name: str) -> Optional[str]:
        for tag in self.tags:
            if tag.name == name:
                return tag.value
        return None

    @property
    def data_size(self) -> int:
        return len(self.data)

    def signature_data(self) -> bytes:
        """Deterministic payload the signer signs (everything except id/signature)."""
        body = {
            "format": FORMAT,
            "owner": self.owner,
            "target": self.target,
            "quantity": self.quantity,
            "reward": self.reward,
            "last_tx": self.last_tx,
            "tags": [[t.name, t.value] for t in self.tags],
            "data_hash": hashlib.sha256(self.data).hexdigest(),
        }
        return json.dumps(body, sort_keys=True, separators=(",", ":")).encode("utf-8")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": FORMAT,
            "id": self.id or "",
            "last_tx": self.last_tx,
            "owner": self.owner,
            "tags": [t.to_dict() for t in self.tags],
            "target": self.target,
            "quantity": self.quantity,
            "data": b64url_encode(self.data),
            "data_size": str(self.data_size),
            "reward": self.reward,
            "signature": self.signature or "",
        }


__all__ = ["Transaction", "Tag", "b64url_encode", "b64url_decode"]
