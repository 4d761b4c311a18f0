import pytest

from approve_allowance import MAX_UINT256
from drip_errors import CaptchaTimeoutError, HttpError
from orchestrate_drip import run
from conftest import FakeResponse, RoutingSession, fake_w3


def flow_session(drip=None):
    return RoutingSession({
        "/createTask": [FakeResponse({"errorId": 0, "taskId": 99})],
        "/getTaskResult": [
            FakeResponse({"errorId": 0, "status": "processing"}),
            FakeResponse({"errorId": 0, "status": "ready", "solution": {"token": "cf-token"}}),
        ],
        "/auth/web3/challenge": [FakeResponse({"data": "Sign this: 123"})],
        "/auth/web3/verify": [FakeResponse({"data": {"token": "bearer-1"}})],
        "/faucet/drip": [drip or FakeResponse({"success": True})],
    })


def test_end_to_end_with_mocked_boundaries(cfg, acct, no_sleep):
    session = flow_session()
    w3, token = fake_w3(allowance=0)

    resp = run(cfg, acct, session, w3, sleep=no_sleep, clock=lambda: 1_760_000_000)

    assert resp == {"success": True}
    _, body, headers = session.posted("/faucet/drip")[0]
    assert body["paymentPayload"]["payload"]["authorization"]["value"] == "100000000000000000"
    assert headers["Authorization"] == "Bearer bearer-1"
    assert session.posted("/auth/web3/verify")[0][1]["turnstileToken"] == "cf-token"
    token.functions.approve.assert_called_once_with(cfg.relayer_contract, MAX_UINT256)


def test_stage_order(cfg, acct, no_sleep):
    session = flow_session()
    w3, _ = fake_w3(allowance=1)
    run(cfg, acct, session, w3, sleep=no_sleep)

    order = []
    for url, _, _ in session.calls:
        step = url.rsplit("/", 1)[-1]
        if not order or order[-1] != step:
            order.append(step)
    assert order == ["createTask", "getTaskResult", "challenge", "verify", "drip"]


def test_captcha_timeout_stops_flow(cfg, acct, no_sleep):
    session = RoutingSession({
        "/createTask": [FakeResponse({"errorId": 0, "taskId": 1})],
        "/getTaskResult": [FakeResponse({"errorId": 0, "status": "processing"})],
    })
    w3, _ = fake_w3(allowance=0)
    with pytest.raises(CaptchaTimeoutError):
        run(cfg, acct, session, w3, sleep=no_sleep)
    w3.eth.contract.assert_not_called()


def test_drip_rejected_propagates(cfg, acct, no_sleep):
    session = flow_session(drip=FakeResponse({"message": "cooldown"}, status_code=400))
    w3, _ = fake_w3(allowance=1)
    with pytest.raises(HttpError):
        run(cfg, acct, session, w3, sleep=no_sleep)
