import json
import logging
import os
from typing import Any, Dict, Optional, Protocol
from urllib.parse import quote

import httpx

from ..errors import MetadataUnavailable
from ..metadata import MalformedMetadataError, ProviderRecord, parse_model_info
from ..utils.constants import HF_ENDPOINT, REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


class MetadataProvider(Protocol):
    async def fetch(self, model_id: str) -> ProviderRecord: ...


def get_auth_headers() -> Dict[str, str]:
    headers = {}
    # NOTE: Read from `HF_TOKEN` if provided, then fallback to reading from `$HF_HOME/token`
    if token := os.getenv("HF_TOKEN"):
        headers["Authorization"] = f"Bearer {token}"
    else:
        path = os.getenv("HF_HOME", ".cache/huggingface")
        filename = (
            os.path.join(os.path.expanduser("~"), path, "token")
            if not os.path.isabs(path)
            else os.path.join(path, "token")
        )
        if os.path.exists(filename):
            with open(filename, "r", encoding="utf-8") as f:
                if token := f.read().strip():
                    headers["Authorization"] = f"Bearer {token}"
    return headers


def create_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(REQUEST_TIMEOUT),
        http2=True,
        follow_redirects=True,
    )


# NOTE: Return type-hint set to `Any`, but it will only be a JSON-compatible object
async def get_json_file(client: httpx.AsyncClient, url: str, headers: Optional[Dict[str, str]] = None) -> Any:
    response = await client.get(url, headers=headers, timeout=REQUEST_TIMEOUT)
    response.raise_for_status()
    return response.json()


class HuggingFaceMetadataProvider:
    """Fetches the parameter count and the file listing of a model from the Hugging Face Hub API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        revision: str = "main",
        endpoint: str = HF_ENDPOINT,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.client = client
        self.revision = revision
        self.endpoint = endpoint.rstrip("/")
        self.headers = get_auth_headers() if headers is None else headers

    def model_info_url(self, model_id: str) -> str:
        return f"{self.endpoint}/api/models/{quote(model_id, safe='/')}/revision/{quote(self.revision, safe='')}"

    async def fetch(self, model_id: str) -> ProviderRecord:
        url = self.model_info_url(model_id)
        logger.debug(f"FETCHING MODEL INFO FROM {url}")
        try:
            raw_metadata = await get_json_file(client=self.client, url=url, headers=self.headers)
            record = parse_model_info(model_id, raw_metadata)
        except httpx.HTTPStatusError as e:
            raise MetadataUnavailable(model_id, f"REQUEST FAILED WITH {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise MetadataUnavailable(model_id, f"REQUEST FAILED WITH {type(e).__name__}: {e}") from e
        except (MalformedMetadataError, OverflowError) as e:
            raise MetadataUnavailable(model_id, str(e)) from e
        # NOTE: Also covers integers over the interpreter digit limit, which `json` rejects with a plain `ValueError`
        except (json.JSONDecodeError, UnicodeDecodeError, ValueError) as e:
            raise MetadataUnavailable(model_id, "RESPONSE IS NOT VALID JSON") from e

        logger.debug(
            f"MODEL={model_id} PARAMETERS={record.parameters} "
            f"FILES={None if record.files is None else len(record.files)}"
        )
        return record
