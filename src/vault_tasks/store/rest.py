"""
Client for the Obsidian Local REST API plugin.

Only used to append new tasks to today's daily note. The plugin writes its
settings (port, key) into the vault, so availability is decided by whether
that settings file can be read.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from vault_tasks.errors import RestError

log = logging.getLogger(__name__)

CONFIG_PATH = Path(".obsidian") / "plugins" / "obsidian-local-rest-api" / "data.json"

DAILY_NOTE_URI = "/periodic/daily"

# Pause after creating the daily note before appending to it
DAILY_NOTE_CREATE_DELAY = 0.1


class RestConfig(BaseModel):
    """Subset of the plugin's data.json (camelCase keys)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    port: int
    insecure_port: int
    enable_insecure_server: bool = False
    api_key: str


def read_config(vault_path: Path) -> Optional[RestConfig]:
    try:
        data = (vault_path / CONFIG_PATH).read_text(encoding="utf-8")
    except OSError:
        return None
    try:
        return RestConfig.model_validate_json(data)
    except ValidationError as e:
        log.warning("Unreadable Local REST API config in %s: %s", vault_path, e)
        return None


class LocalRestClient:
    def __init__(self, vault_path: Path, client: Optional[httpx.AsyncClient] = None) -> None:
        self._vault_path = vault_path
        self._client = client

    def config(self) -> Optional[RestConfig]:
        # Re-read every time; the plugin may be installed or reconfigured while we run
        return read_config(self._vault_path)

    def is_available(self) -> bool:
        return self.config() is not None

    def url(self, uri: str) -> str:
        config = self._require_config()
        if config.enable_insecure_server:
            return f"http://127.0.0.1:{config.insecure_port}{uri}"
        return f"https://127.0.0.1:{config.port}{uri}"

    def token(self) -> str:
        return self._require_config().api_key

    def _require_config(self) -> RestConfig:
        config = self.config()
        if config is None:
            raise RestError(f"Obsidian Local REST API is not configured in {self._vault_path}")
        return config

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        # The plugin serves HTTPS with a self-signed certificate
        async with httpx.AsyncClient(verify=False, timeout=10.0) as client:
            yield client

    async def add_text_to_daily_note(self, text: str) -> None:
        """
        Append text to today's daily note, creating the note if needed.

        Raises:
            RestError: not configured, unreachable, or the append was refused
        """
        url = self.url(DAILY_NOTE_URI)
        headers = {"Authorization": f"Bearer {self.token()}"}

        try:
            async with self._session() as client:
                response = await client.get(url, headers=headers)
                if response.status_code == 404:
                    log.info("Creating today's daily note")
                    await client.post(url, headers=headers, content=b"")
                    await asyncio.sleep(DAILY_NOTE_CREATE_DELAY)

                response = await client.post(
                    url,
                    headers={**headers, "Content-Type": "text/markdown"},
                    content=text.encode("utf-8"),
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            log.error("Failed to append to the daily note: %s", e)
            raise RestError(str(e)) from e
