# Shared pytest fixtures
from __future__ import annotations

import json
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pandas as pd
import pytest

from valoris.config.loader import ENV_OVERRIDES, AnalysisServiceConfig, ChatConfig
from valoris.logging.init import reset_logging

NORMALIZE_URL = "https://analysis.test/normalize"
ENRICH_URL = "https://analysis.test/enrich"
CHAT_URL = "https://analysis.test/chat"


@pytest.fixture(autouse=True)
def clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ENV_OVERRIDES:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return f"""analysis_service:
  normalize_url: {NORMALIZE_URL}
  enrich_url: {ENRICH_URL}
  api_key: test-key
  timeout_seconds: 5
chat:
  url: {CHAT_URL}
  history_limit: 4
cache_capacity: 10
number_locale: none
error_log_dir: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "valoris.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def service_config() -> AnalysisServiceConfig:
    return AnalysisServiceConfig(
        normalize_url=NORMALIZE_URL,
        enrich_url=ENRICH_URL,
        api_key="test-key",
        timeout_seconds=5.0,
    )


@pytest.fixture()
def chat_config() -> ChatConfig:
    return ChatConfig(url=CHAT_URL, api_key="chat-key", timeout_seconds=5.0, history_limit=4)


@pytest.fixture()
def sample_rows() -> list[dict[str, Any]]:
    return [
        {"Supplier": "Acme", "Spend": 100, "Category": "Software", "Segment": "IT"},
        {"Supplier": "ACME", "Spend": 50, "Category": "Hardware", "Segment": "Ops"},
        {"Supplier": "Other", "Spend": 10, "Category": "Cloud", "Segment": "Finance"},
    ]


@pytest.fixture()
def enrich_body() -> dict[str, Any]:
    return {
        "schemaVersion": "1",
        "analysis": [
            {
                "id": "a1",
                "vendor": "Acme",
                "segment": "IT",
                "category": "Software",
                "type": "License",
                "item": "Acme suite",
                "pastSpend": 150,
                "projectedSpend": 160,
                "projectedChange": "+7%",
                "savingsRange": "€12 to €22",
                "savingsPercentage": "-8 to -15%",
                "confidence": 0.8,
                "details": {
                    "description": "Consolidate licences",
                    "implementation": "Renegotiate",
                    "timeline": "30 days",
                    "riskLevel": "Low",
                },
            },
            {
                "vendor": "Other",
                "pastSpend": 10,
                "projectedSpend": 10.5,
                "confidence": 0.7,
            },
        ],
    }


class StageRecorder:
    """httpx.MockTransport handler that counts requests per URL."""

    def __init__(self, responses: dict[str, Callable[[httpx.Request], httpx.Response]]) -> None:
        self.responses = responses
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.responses.get(str(request.url))
        if handler is None:
            return httpx.Response(404, text="no route")
        return handler(request)

    def count(self, url: str) -> int:
        return sum(1 for r in self.requests if str(r.url) == url)

    def bodies(self, url: str) -> list[Any]:
        return [json.loads(r.content) for r in self.requests if str(r.url) == url]


@pytest.fixture()
def stage_recorder(enrich_body) -> Callable[..., StageRecorder]:
    """Factory: ``stage_recorder()`` answers both stages successfully."""

    def make(**overrides: Callable[[httpx.Request], httpx.Response]) -> StageRecorder:
        responses: dict[str, Callable[[httpx.Request], httpx.Response]] = {
            NORMALIZE_URL: lambda req: httpx.Response(200, json={"vendors": [{"vendor": "Acme"}]}),
            ENRICH_URL: lambda req: httpx.Response(200, json=enrich_body),
        }
        responses.update({{"normalize": NORMALIZE_URL, "enrich": ENRICH_URL, "chat": CHAT_URL}[k]: v
                          for k, v in overrides.items()})
        return StageRecorder(responses)

    return make


@pytest.fixture()
def make_workbook(temp_workdir: Path) -> Callable[..., Path]:
    """Write a single-sheet .xlsx with openpyxl; ``header=False`` writes raw rows."""

    def make(name: str, data: list[list[Any]], header: bool = False) -> Path:
        path = temp_workdir / "data" / name
        df = pd.DataFrame(data)
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name="Sheet1", index=False, header=header)
        return path

    return make
