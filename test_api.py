"""HTTP API tests using FastAPI's TestClient."""
import pytest
from fastapi.testclient import TestClient

from llm import InvalidModelOutput, UpstreamError
from main import app, get_llm_client
from schemas import LoanOffer, ParseResponse


class FakeLLM:
    def __init__(self, parse=None, explain="- explained", error=None):
        self.parse = parse or ParseResponse()
        self.explain = explain
        self.error = error
        self.plans = []

    def extract_offers(self, text):
        if self.error:
            raise self.error
        return self.parse

    def explain_plan(self, plan):
        if self.error:
            raise self.error
        self.plans.append(plan)
        return self.explain


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


def use_llm(fake):
    app.dependency_overrides[get_llm_client] = lambda: fake
    return fake


LOANS = [
    {"name": "A", "interest_rate": 5, "borrowing_cap": 5000},
    {"name": "B", "interest_rate": 8},
]


def test_root(client):
    assert client.get("/").json() == {"message": "Loan Mix Optimizer Backend"}


def test_optimize(client):
    r = client.post("/api/optimize", json={"target": 10000, "loans": LOANS})
    assert r.status_code == 200
    plan = r.json()
    assert [e["offer"]["name"] for e in plan["allocation"]] == ["A", "B"]
    assert [e["principal_used"] for e in plan["allocation"]] == [5000, 5000]
    assert plan["shortfall"] == 0
    assert plan["feasible"] is True
    assert plan["allocation"][0]["stats"]["monthly_payment"] > 0


def test_optimize_net_mode(client):
    r = client.post("/api/optimize", json={
        "target": 9900, "mode": "net", "loans": [{"name": "A", "interest_rate": 5, "origination_fee_percent": 1}],
    })
    assert r.status_code == 200
    assert r.json()["allocation"][0]["principal_used"] == pytest.approx(10000)


@pytest.mark.parametrize("body", [
    {"target": 0, "loans": LOANS},
    {"target": -5, "loans": LOANS},
    {"target": 1000, "loans": []},
    {"target": 1000, "loans": [{"name": "A", "interest_rate": -1}]},
    {"target": 1000, "loans": LOANS, "mode": "weighted"},
])
def test_optimize_rejects_invalid_input(client, body):
    assert client.post("/api/optimize", json=body).status_code == 422


def test_parse(client):
    use_llm(FakeLLM(parse=ParseResponse(target=12000, loans=[LoanOffer(name="A", interest_rate=4)])))
    r = client.post("/api/parse", json={"text": "12k at 4%"})
    assert r.status_code == 200
    assert r.json()["target"] == 12000
    assert r.json()["loans"][0]["name"] == "A"


def test_parse_empty_text(client):
    use_llm(FakeLLM())
    assert client.post("/api/parse", json={"text": "   "}).status_code == 400


@pytest.mark.parametrize("error, status", [(InvalidModelOutput("bad json"), 422), (UpstreamError("down"), 502)])
def test_parse_failures(client, error, status):
    use_llm(FakeLLM(error=error))
    assert client.post("/api/parse", json={"text": "something"}).status_code == status


def test_explain_uses_plan_from_request(client):
    fake = use_llm(FakeLLM(explain="- A first"))
    plan = client.post("/api/optimize", json={"target": 10000, "loans": LOANS}).json()

    r = client.post("/api/explain", json={"plan": plan})
    assert r.status_code == 200
    assert r.json() == {"explanation": "- A first"}
    assert fake.plans[0].target == 10000


def test_explain_upstream_failure(client):
    use_llm(FakeLLM(error=UpstreamError("down")))
    plan = client.post("/api/optimize", json={"target": 10000, "loans": LOANS}).json()
    r = client.post("/api/explain", json={"plan": plan})
    assert r.status_code == 502
    assert "unavailable" in r.json()["detail"]


def test_optimize_numbers_unnamed_loans(client):
    r = client.post("/api/optimize", json={"target": 1000, "loans": [
        {"name": "", "interest_rate": 5, "borrowing_cap": 400},
        {"interest_rate": 6},
    ]})
    assert r.status_code == 200
    assert [e["offer"]["name"] for e in r.json()["allocation"]] == ["Loan 1", "Loan 2"]
