from eth_account.messages import encode_defunct
from web3 import Web3

from drip_errors import ProtocolError
from faucet_http import post_json


class LoginClient:
    """Web3 challenge login: challenge -> personal_sign -> verify -> bearer."""

    def __init__(self, session, cfg):
        self.session = session
        self.cfg = cfg

    def request_challenge(self, address) -> str:
        data = post_json(self.session, self.cfg.challenge_url,
                         {"walletAddress": address}, timeout=self.cfg.auth_timeout)
        message = data.get("data") if isinstance(data, dict) else None
        if not isinstance(message, str) or not message:
            raise ProtocolError("No challenge message from server")
        return message

    def verify(self, address, signature, turnstile_token) -> str:
        data = post_json(self.session, self.cfg.verify_url, {
            "walletType": "Wallet",
            "walletAddress": address,
            "signature": signature,
            "turnstileToken": turnstile_token,
        }, timeout=self.cfg.auth_timeout)
        token = bearer_from(data)
        if not token:
            raise ProtocolError("No token returned from verify")
        return token

    def login(self, acct, turnstile_token) -> str:
        message = self.request_challenge(acct.address)
        print("[LOGIN] challenge received")
        signature = sign_challenge(acct, message)
        token = self.verify(acct.address, signature, turnstile_token)
        print("[LOGIN] bearer obtained")
        return token


def sign_challenge(acct, message):
    """EIP-191 personal_sign over the raw challenge text, 0x-hex."""
    signed = acct.sign_message(encode_defunct(text=message))
    return Web3.to_hex(signed.signature)


def bearer_from(data):
    # {data: {token}} is what the backend sends; {token} and {data: "<token>"} are accepted too.
    if not isinstance(data, dict):
        return None
    inner = data.get("data")
    if isinstance(inner, dict) and isinstance(inner.get("token"), str) and inner["token"]:
        return inner["token"]
    if isinstance(data.get("token"), str) and data["token"]:
        return data["token"]
    if isinstance(inner, str) and inner:
        return inner
    return None
