"""
Image URL resolution.

Product images are stored as site-relative paths ("/images/cpu/x.jpg").
In production they are served from Cloudinary, where the upload script
put them under the "onlypc-images/" folder without file extensions.
"""

from __future__ import annotations

import re

PLACEHOLDER_IMAGE = "/images/placeholder.jpg"
CLOUDINARY_BASE = "https://res.cloudinary.com"

_EXTENSION = re.compile(r"\.[A-Za-z0-9]+$")


class ImageResolver:
    def __init__(
        self,
        cloud_name: str | None = None,
        placeholder: str = PLACEHOLDER_IMAGE,
    ) -> None:
        self.cloud_name = cloud_name
        self.placeholder = placeholder

    @property
    def cdn_enabled(self) -> bool:
        return bool(self.cloud_name)

    def public_id(self, path: str) -> str:
        clean = path.lstrip("/")
        if clean.startswith("images/"):
            clean = "onlypc-images/" + clean[len("images/"):]
        return _EXTENSION.sub("", clean)

    def _cdn_url(self, path: str, transformation: str) -> str:
        return f"{CLOUDINARY_BASE}/{self.cloud_name}/image/upload/{transformation}/{self.public_id(path)}"

    def resolve(self, path: str | None) -> str:
        if not path:
            return self.placeholder
        if path.startswith(("http://", "https://")):
            return path
        if self.cdn_enabled:
            return self._cdn_url(path, "f_auto,q_auto")
        return path if path.startswith("/") else f"/{path}"

    def resolve_optimized(
        self,
        path: str | None,
        width: int | None = None,
        height: int | None = None,
        quality: int | None = None,
    ) -> str:
        if not path or not self.cdn_enabled or path.startswith(("http://", "https://")):
            return self.resolve(path)

        parts = ["f_auto"]
        if width:
            parts.append(f"w_{width}")
        if height:
            parts.append(f"h_{height}")
        if width or height:
            parts.append("c_fill")
        parts.append(f"q_{quality}" if quality else "q_auto")
        return self._cdn_url(path, ",".join(parts))
