import asyncio

import httpx
import pytest

from llm_mem import HuggingFaceMetadataProvider, MetadataUnavailable
from llm_mem.hub.hf_client import get_auth_headers

MODEL_INFO = {
    "id": "meta-llama/Llama-2-7b-hf",
    "safetensors": {"parameters": {"F16": 6738415616}, "total": 6738415616},
    "siblings": [
        {"rfilename": "config.json"},
        {"rfilename": "model-int8.safetensors"},
        {"rfilename": "model-int4.safetensors"},
    ],
}


def fetch(handler, model_id="meta-llama/Llama-2-7b-hf", **kwargs):
    async def _fetch():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = HuggingFaceMetadataProvider(
                client=client, endpoint="https://hub.test", headers=kwargs.pop("headers", {}), **kwargs
            )
            return await provider.fetch(model_id)

    return asyncio.run(_fetch())


def test_fetch_model_info():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=MODEL_INFO)

    record = fetch(handler, headers={"Authorization": "Bearer hf_test"})

    assert len(requests) == 1
    assert str(requests[0].url) == "https://hub.test/api/models/meta-llama/Llama-2-7b-hf/revision/main"
    assert requests[0].headers["Authorization"] == "Bearer hf_test"
    assert record.parameters == 6738415616
    assert [f.suffix for f in record.files] == [None, "int8", "int4"]


def test_fetch_model_info_at_revision():
    urls = []

    def handler(request: httpx.Request) -> httpx.Response:
        urls.append(str(request.url))
        return httpx.Response(200, json={})

    record = fetch(handler, revision="refs/pr/1")
    assert urls == ["https://hub.test/api/models/meta-llama/Llama-2-7b-hf/revision/refs%2Fpr%2F1"]
    assert record.parameters is None
    assert record.files is None


@pytest.mark.parametrize("status_code", [401, 404, 500])
def test_http_errors_are_metadata_unavailable(status_code):
    with pytest.raises(MetadataUnavailable) as excinfo:
        fetch(lambda request: httpx.Response(status_code, json={"error": "nope"}))
    assert excinfo.value.model_id == "meta-llama/Llama-2-7b-hf"
    assert str(status_code) in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, httpx.HTTPStatusError)


def test_transport_errors_are_metadata_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(MetadataUnavailable) as excinfo:
        fetch(handler)
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


def test_non_json_response_is_metadata_unavailable():
    with pytest.raises(MetadataUnavailable, match="NOT VALID JSON"):
        fetch(lambda request: httpx.Response(200, text="<html>rate limited</html>"))


def test_malformed_response_is_metadata_unavailable():
    with pytest.raises(MetadataUnavailable, match="EXPECTED dict"):
        fetch(lambda request: httpx.Response(200, json=["not", "a", "model"]))


def test_auth_headers_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("HF_TOKEN", "hf_env")
    monkeypatch.setenv("HF_HOME", str(tmp_path))
    (tmp_path / "token").write_text("hf_file\n")
    assert get_auth_headers() == {"Authorization": "Bearer hf_env"}


def test_auth_headers_from_hf_home_token(monkeypatch, tmp_path):
    monkeypatch.delenv("HF_TOKEN", raising=False)
    monkeypatch.setenv("HF_HOME", str(tmp_path))
    assert get_auth_headers() == {}

    (tmp_path / "token").write_text("hf_file\n")
    assert get_auth_headers() == {"Authorization": "Bearer hf_file"}


def test_parameter_count_too_large_for_a_float_is_metadata_unavailable():
    body = '{"safetensors": {"total": 1' + "0" * 400 + "}}"
    with pytest.raises(MetadataUnavailable, match="DOES NOT FIT IN A FLOAT"):
        fetch(lambda request: httpx.Response(200, text=body, headers={"Content-Type": "application/json"}))


def test_parameter_count_over_the_digit_limit_is_metadata_unavailable():
    body = '{"safetensors": {"total": 1' + "0" * 5000 + "}}"
    with pytest.raises(MetadataUnavailable):
        fetch(lambda request: httpx.Response(200, text=body, headers={"Content-Type": "application/json"}))


def test_model_id_is_quoted_in_the_url():
    urls = []

    def handler(request: httpx.Request) -> httpx.Response:
        urls.append(str(request.url))
        return httpx.Response(200, json={})

    fetch(handler, model_id="org/model?revision=x#frag")
    assert urls == ["https://hub.test/api/models/org/model%3Frevision%3Dx%23frag/revision/main"]
