import asyncio
import json

import httpx
import pytest

import llm_mem.resolver as resolver
from llm_mem import FileDescriptor, ProviderRecord
from llm_mem.cli import run
from llm_mem.main import main
from llm_mem.print import format_short_number, make_bar


class FakeProvider:
    async def fetch(self, model_id):
        return ProviderRecord(
            model_id=model_id,
            parameters=None,
            files=[FileDescriptor(filename="model-int4.gguf", suffix="int4")],
        )


def test_json_output_from_parameters(capsys):
    main(["--parameters", "7", "--quantization", "4-bit", "--context-window", "2048", "--json-output"])
    out = json.loads(capsys.readouterr().out)
    assert out["quantization"] == "4-bit"
    assert out["parameters_in_billions"] == 7
    assert out["total_gb"] == 6.524
    assert "model_id" not in out


def test_report_from_parameters(capsys):
    main(["--parameters", "7", "--quantization", "fp16", "--context-window", "4096"])
    report = capsys.readouterr().out
    assert "MEMORY ESTIMATE FOR" in report
    assert "18.05 GB (7.0B params)" in report
    assert "WEIGHTS FP16" in report
    assert "OS OVERHEAD" in report


def test_run_with_model_id(capsys):
    out = asyncio.run(run(model_id="TheBloke/Llama-2-7B-GGUF", context_window=2048, provider=FakeProvider()))
    assert out["model_id"] == "TheBloke/Llama-2-7B-GGUF"
    assert out["parameters"] == 7e9
    assert out["quantization"] == "4-bit"
    assert out["total_gb"] == 6.524
    assert "`TheBloke/Llama-2-7B-GGUF`" in capsys.readouterr().out


def test_missing_arguments():
    with pytest.raises(SystemExit) as excinfo:
        main(["--parameters", "7"])
    assert excinfo.value.code == 2


def test_invalid_quantization_choice():
    with pytest.raises(SystemExit) as excinfo:
        main(["--parameters", "7", "--quantization", "7-bit"])
    assert excinfo.value.code == 2


def test_errors_exit_with_1(monkeypatch, capsys):
    transport = httpx.MockTransport(lambda request: httpx.Response(500))
    monkeypatch.setattr(resolver, "create_client", lambda: httpx.AsyncClient(transport=transport))
    with pytest.raises(SystemExit) as excinfo:
        main(["--model-id", "org/model-7b"])
    assert excinfo.value.code == 1
    assert "Error: METADATA FOR `org/model-7b` UNAVAILABLE" in capsys.readouterr().out


@pytest.mark.parametrize(
    "fraction, bar",
    [(0.0, "░░░░░░░░░░"), (0.25, "██░░░░░░░░"), (0.5, "█████░░░░░"), (1.0, "██████████"), (1.5, "██████████")],
)
def test_make_bar(fraction, bar):
    assert make_bar(fraction, 10) == bar


@pytest.mark.parametrize(
    "n, text",
    [(512, "512"), (2048, "2.0K"), (350e6, "350.0M"), (6738415616, "6.7B"), (1.2e12, "1.2T")],
)
def test_format_short_number(n, text):
    assert format_short_number(n) == text


def test_no_color(monkeypatch, capsys):
    monkeypatch.setenv("NO_COLOR", "1")
    main(["--parameters", "7", "--quantization", "4-bit"])
    report = capsys.readouterr().out
    assert "\x1b[" not in report
    assert report.splitlines()[0].startswith("┌")
