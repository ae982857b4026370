"""
HTTP adapter — release index lookups and archive downloads.

Uses ``urllib.request`` directly; the download site is a plain
file-release page and a handful of tarball links.
"""

from __future__ import annotations

import logging
import urllib.request
from pathlib import Path

from rose_installer.adapters.base import Adapter, ExecutionContext
from rose_installer.core.models.action import Receipt

logger = logging.getLogger(__name__)

_USER_AGENT = "rose-installer/1.0"
_CHUNK = 1024 * 1024
# Log a progress line every 64 MiB, like wget --progress=dot:giga
_PROGRESS_EVERY = 64 * _CHUNK


class HttpAdapter(Adapter):
    """Fetch pages and download files.

    Action params:
        operation (str): 'fetch' (page text in receipt output) or 'download'.
        url (str): Absolute URL.
        dest (str): Target file path (for 'download').
    """

    VALID_OPS = {"fetch", "download"}

    def __init__(self, timeout: int = 60):
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "http"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.params.get("operation", "")
        if operation not in self.VALID_OPS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(self.VALID_OPS))}"
        if not context.params.get("url"):
            return False, "Missing required param: 'url'"
        if operation == "download" and not context.params.get("dest"):
            return False, "Missing required param: 'dest' for download operation"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.params["operation"]
        url = context.params["url"]
        try:
            if operation == "fetch":
                return self._fetch(context, url)
            return self._download(context, url, Path(context.params["dest"]))
        except Exception as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"HTTP error for {url}: {e}",
            )

    def _open(self, url: str):
        req = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
        return urllib.request.urlopen(req, timeout=self._timeout)

    def _fetch(self, ctx: ExecutionContext, url: str) -> Receipt:
        with self._open(url) as resp:
            charset = resp.headers.get_content_charset() or "utf-8"
            text = resp.read().decode(charset, errors="replace")
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=text,
            metadata={"url": url, "size": len(text)},
        )

    def _download(self, ctx: ExecutionContext, url: str, dest: Path) -> Receipt:
        dest.parent.mkdir(parents=True, exist_ok=True)
        partial = dest.with_name(dest.name + ".part")
        written = 0
        next_report = _PROGRESS_EVERY
        try:
            with self._open(url) as resp, open(partial, "wb") as out:
                for chunk in iter(lambda: resp.read(_CHUNK), b""):
                    out.write(chunk)
                    written += len(chunk)
                    if written >= next_report:
                        logger.info("  %d MiB", written // _CHUNK)
                        next_report += _PROGRESS_EVERY
            partial.replace(dest)
        finally:
            partial.unlink(missing_ok=True)

        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=str(dest),
            metadata={"url": url, "size_bytes": written},
        )
