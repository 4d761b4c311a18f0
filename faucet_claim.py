import os, time
from dataclasses import dataclass
from decimal import Decimal

from eth_account.messages import encode_typed_data
from web3 import Web3

from faucet_http import post_json

TRANSFER_TYPE = [
    {"name": "token", "type": "address"},
    {"name": "from", "type": "address"},
    {"name": "to", "type": "address"},
    {"name": "value", "type": "uint256"},
    {"name": "validAfter", "type": "uint256"},
    {"name": "validBefore", "type": "uint256"},
    {"name": "nonce", "type": "bytes32"},
]

DOMAIN_TYPE = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]


@dataclass(frozen=True)
class TransferAuthorization:
    token: str
    sender: str
    to: str
    value: int
    valid_after: int
    valid_before: int
    nonce: bytes

    def message(self):
        return {
            "token": self.token,
            "from": self.sender,
            "to": self.to,
            "value": self.value,
            "validAfter": self.valid_after,
            "validBefore": self.valid_before,
            "nonce": self.nonce,
        }

    def wire(self):
        # value goes out as a decimal string, nonce as 0x-hex
        return {
            "token": self.token,
            "from": self.sender,
            "to": self.to,
            "value": str(self.value),
            "validAfter": self.valid_after,
            "validBefore": self.valid_before,
            "nonce": Web3.to_hex(self.nonce),
        }


def new_nonce() -> bytes:
    return os.urandom(32)


def to_base_units(amount, decimals) -> int:
    return int(Decimal(str(amount)).scaleb(int(decimals)))


def build_authorization(cfg, sender, recipient, now) -> TransferAuthorization:
    now = int(now)
    return TransferAuthorization(
        token=cfg.token_contract,
        sender=sender,
        to=recipient,
        value=to_base_units(cfg.drip_amount, cfg.token_decimals),
        valid_after=now,
        valid_before=now + cfg.valid_seconds,
        nonce=new_nonce(),
    )


def typed_data(cfg, auth):
    return {
        "types": {"EIP712Domain": DOMAIN_TYPE, "TransferWithAuthorization": TRANSFER_TYPE},
        "primaryType": "TransferWithAuthorization",
        "domain": {
            "name": cfg.domain_name,
            "version": cfg.domain_version,
            "chainId": cfg.chain_id,
            "verifyingContract": cfg.relayer_contract,
        },
        "message": auth.message(),
    }


def sign_authorization(acct, cfg, auth) -> str:
    signed = acct.sign_message(encode_typed_data(full_message=typed_data(cfg, auth)))
    return Web3.to_hex(signed.signature)


def build_payload(cfg, acct, recipient=None, clock=time.time):
    recipient = recipient or cfg.recipient_address or acct.address
    auth = build_authorization(cfg, acct.address, recipient, clock())
    return {
        "recipientAddress": recipient,
        "paymentPayload": {
            "token": cfg.token_contract,
            "payload": {
                "authorization": auth.wire(),
                "signature": sign_authorization(acct, cfg, auth),
            },
        },
        "paymentRequirements": {
            "network": cfg.network,
            "relayerContract": cfg.relayer_contract,
        },
    }


def send_drip(session, cfg, payload, bearer):
    """POST the drip with the bearer token. Returns the decoded body (or raw text)."""
    return post_json(session, cfg.drip_url, payload, timeout=cfg.drip_timeout,
                     headers={"Authorization": f"Bearer {bearer}"}, allow_text=True)

