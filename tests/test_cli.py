from __future__ import annotations

import json

import httpx
import respx
from typer.testing import CliRunner

from community_sdk.cli.main import app
from community_sdk.version import __version__

from conftest import community_state

runner = CliRunner()

GATEWAY = "http://gateway.cli.test"
EVALUATOR = "http://evaluator.cli.test/rpc"
ENDPOINTS = ["--gateway", GATEWAY, "--evaluator", EVALUATOR]


def test_version() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.output.strip() == __version__


@respx.mock
def test_state_prints_settings_as_object() -> None:
    route = respx.post(EVALUATOR).mock(
        return_value=httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": community_state()})
    )

    result = runner.invoke(app, [*ENDPOINTS, "state", "community-1"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["ticker"] == "TEST"
    assert data["settings"]["quorum"] == 0.5
    assert json.loads(route.calls.last.request.content)["params"] == ["community-1"]


@respx.mock
def test_state_reports_rpc_errors() -> None:
    respx.post(EVALUATOR).mock(
        return_value=httpx.Response(
            200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "contract not found"}}
        )
    )
    result = runner.invoke(app, [*ENDPOINTS, "state", "missing"])
    assert result.exit_code == 1
    assert "contract not found" in result.output


@respx.mock
def test_holder_single_holder() -> None:
    state = community_state(balances={"only-holder": 5}, vault={})
    respx.post(EVALUATOR).mock(return_value=httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": state}))

    result = runner.invoke(app, [*ENDPOINTS, "holder", "community-1"])
    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == "only-holder"


@respx.mock
def test_holder_none_eligible() -> None:
    state = community_state(balances={"a": 0}, vault={})
    respx.post(EVALUATOR).mock(return_value=httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": state}))

    result = runner.invoke(app, [*ENDPOINTS, "holder", "community-1"])
    assert result.exit_code == 1
    assert "no eligible holder" in result.output


@respx.mock
def test_cost_in_ar() -> None:
    respx.get(f"{GATEWAY}/price/400000000").mock(return_value=httpx.Response(200, text="2500000000000"))

    result = runner.invoke(app, ["--gateway", GATEWAY, "cost", "--ar"])
    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == "2.5"

    result = runner.invoke(app, ["--gateway", GATEWAY, "cost"])
    assert result.stdout.strip() == "2500000000000"


def test_bad_gateway_url() -> None:
    result = runner.invoke(app, ["--gateway", "ftp://nope", "version"])
    assert result.exit_code != 0
