import json
from unittest.mock import MagicMock

import pytest
from eth_account import Account

from drip_config import DripConfig

# eth-account docs test key
TEST_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"


class FakeResponse:
    def __init__(self, body=None, status_code=200, text=None):
        self.body = body
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(body)

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self.body is None:
            raise ValueError("not json")
        return self.body


class RoutingSession:
    """requests.Session stand-in: url suffix -> list of responses (last one repeats)."""

    def __init__(self, routes):
        self.routes = {k: list(v) for k, v in routes.items()}
        self.calls = []
        self.post = MagicMock(side_effect=self._post)

    def _post(self, url, json=None, headers=None, timeout=None):
        self.calls.append((url, json, headers or {}))
        for suffix, queue in self.routes.items():
            if url.endswith(suffix):
                return queue.pop(0) if len(queue) > 1 else queue[0]
        raise AssertionError(f"unexpected POST {url}")

    def posted(self, suffix):
        return [c for c in self.calls if c[0].endswith(suffix)]


@pytest.fixture
def cfg():
    return DripConfig(captcha_api_key="cap-key", captcha_site_key="0x4AAAAAAA-site")


@pytest.fixture
def acct():
    return Account.from_key(TEST_KEY)


@pytest.fixture
def no_sleep():
    return MagicMock()


def fake_w3(allowance):
    """MagicMock Web3 whose ERC-20 contract reports `allowance` and mines approvals."""
    w3 = MagicMock()
    token = MagicMock()
    w3.eth.contract.return_value = token
    token.functions.allowance.return_value.call.return_value = allowance
    token.functions.approve.return_value.build_transaction.return_value = {
        "to": "0x55d398326f99059fF775485246999027B3197955",
        "data": "0x095ea7b3",
        "gas": 60000,
        "gasPrice": 10**9,
        "nonce": 0,
        "chainId": 56,
        "value": 0,
    }
    w3.eth.get_transaction_count.return_value = 0
    w3.eth.gas_price = 10**9
    w3.eth.send_raw_transaction.return_value = b"\xab" * 32
    w3.eth.wait_for_transaction_receipt.return_value = {"status": 1, "blockNumber": 1}
    return w3, token
