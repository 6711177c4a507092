import threading

import httpx
from fastapi.testclient import TestClient

from chain_assistant.agent.client import AssistantClient, MISSING_CREDENTIAL_MESSAGE
from chain_assistant.agent.orchestrator import Orchestrator
from chain_assistant.api.main import create_app
from chain_assistant.chain.balance import BalanceResolver
from chain_assistant.config import AssistantConfig
from chain_assistant.obs.tracing import TraceStore
from chain_assistant.types import AssistantResult, ResultKind

WALLET = "0x" + "4e" * 20


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.host == "rpc.test":
        return httpx.Response(200, json={"result": {"value": 5 * 10**18}})
    return httpx.Response(
        200,
        json={
            "candidates": [
                {
                    "content": {"parts": [{"text": "It holds 5 BSSC."}]},
                    "groundingMetadata": {
                        "groundingAttributions": [
                            {"web": {"uri": "https://explorer.bssc.live/", "title": "Explorer"}}
                        ]
                    },
                }
            ]
        },
    )


def _client(api_key: str = "k") -> TestClient:
    config = AssistantConfig(api_key=api_key, rpc_url="https://rpc.test/", native_symbol="BSSC")
    http = httpx.Client(transport=httpx.MockTransport(_handler))
    orchestrator = Orchestrator(
        config=config,
        resolver=BalanceResolver(config, client=http),
        assistant=AssistantClient(config, client=http),
        trace_store=TraceStore(),
    )
    return TestClient(create_app(orchestrator))


def test_api_submit_state_trace_metrics() -> None:
    client = _client()

    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["assistant_enabled"] is True

    submit_resp = client.post("/submit", json={"query": WALLET})
    assert submit_resp.status_code == 200
    payload = submit_resp.json()
    assert payload["status"] == "idle"
    assert payload["display"] == "It holds 5 BSSC."
    assert payload["kind"] == "success"
    assert payload["sources"] == [{"uri": "https://explorer.bssc.live/", "title": "Explorer"}]

    state_resp = client.get("/state")
    assert state_resp.json()["display"] == "It holds 5 BSSC."

    traces_resp = client.get("/traces")
    items = traces_resp.json()["items"]
    assert len(items) == 1
    assert items[0]["balance_context"] == "5.0000"

    detail_resp = client.get(f"/traces/{items[0]['trace_id']}")
    assert detail_resp.status_code == 200
    assert client.get("/traces/unknown").status_code == 404

    metrics_resp = client.get("/metrics")
    assert metrics_resp.json()["total_requests"] == 1


def test_api_balance_check() -> None:
    client = _client()

    resp = client.post("/balance", json={"query": WALLET})

    assert resp.status_code == 200
    assert resp.json()["display"] == "Balance: 5000000000.0000 BSSC"


def test_api_rejects_empty_query() -> None:
    assert _client().post("/submit", json={"query": ""}).status_code == 422


def test_api_reports_missing_credential() -> None:
    resp = _client(api_key="").post("/submit", json={"query": "What is BSSC?"})

    assert resp.status_code == 200
    assert resp.json()["kind"] == "missing_credential"
    assert resp.json()["display"] == MISSING_CREDENTIAL_MESSAGE


def test_api_returns_conflict_while_in_flight() -> None:
    started = threading.Event()
    release = threading.Event()

    class _SlowAssistant:
        def ask(self, prompt: str, api_key: str | None = None) -> AssistantResult:
            started.set()
            release.wait(timeout=5)
            return AssistantResult(kind=ResultKind.SUCCESS, text="done")

    config = AssistantConfig(api_key="k")
    orchestrator = Orchestrator(
        config=config,
        resolver=BalanceResolver(config, client=httpx.Client(transport=httpx.MockTransport(_handler))),
        assistant=_SlowAssistant(),
    )
    client = TestClient(create_app(orchestrator))

    worker = threading.Thread(target=orchestrator.submit, args=("What is BSSC?",))
    worker.start()
    try:
        assert started.wait(timeout=5)
        assert client.get("/state").json()["status"] == "in_flight"
        assert client.post("/submit", json={"query": "again"}).status_code == 409
    finally:
        release.set()
        worker.join(timeout=5)

    assert client.get("/state").json()["status"] == "idle"
