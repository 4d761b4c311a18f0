from dataclasses import dataclass, fields
import getpass
from pathlib import Path

import yaml
from web3 import Web3
from eth_account import Account

from drip_errors import ConfigurationError

BSC_USDT = "0x55d398326f99059fF775485246999027B3197955"
B402_RELAYER = "0xe1af7daea624ba3b5073f24a6ea5531434d82d88"

# config.yaml section -> {yaml key: DripConfig field}
SECTIONS = {
    "captcha": {
        "api_key": "captcha_api_key",
        "site_key": "captcha_site_key",
        "service_url": "captcha_service_url",
        "task_type": "captcha_task_type",
        "page_path": "captcha_page_path",
        "poll_interval": "captcha_poll_interval",
        "max_polls": "captcha_max_polls",
        "timeout": "captcha_timeout",
    },
    "drip": {
        "amount": "drip_amount",
        "decimals": "token_decimals",
        "valid_seconds": "valid_seconds",
        "network": "network",
        "domain_name": "domain_name",
        "domain_version": "domain_version",
        "timeout": "drip_timeout",
    },
}


@dataclass
class DripConfig:
    rpc_url: str = "https://bsc.publicnode.com"
    chain_id: int = 56
    token_contract: str = BSC_USDT
    relayer_contract: str = B402_RELAYER
    recipient_address: str = ""  # empty -> drip to the wallet itself
    receipt_timeout: int = 240

    api_base: str = "https://www.b402.ai"
    api_prefix: str = "/api/api/v1"
    auth_timeout: int = 15

    captcha_api_key: str = ""
    captcha_site_key: str = ""
    captcha_service_url: str = "https://api.capmonster.cloud"
    captcha_task_type: str = "TurnstileTaskProxyless"
    captcha_page_path: str = "/experience-b402"
    captcha_poll_interval: float = 3
    captcha_max_polls: int = 40
    captcha_timeout: int = 20

    drip_amount: str = "0.1"
    token_decimals: int = 18
    valid_seconds: int = 3600
    network: str = "mainnet"
    domain_name: str = "B402"
    domain_version: str = "1"
    drip_timeout: int = 30

    def __post_init__(self):
        self.chain_id = int(self.chain_id)
        self.captcha_max_polls = int(self.captcha_max_polls)
        self.captcha_poll_interval = float(self.captcha_poll_interval)
        self.captcha_timeout = int(self.captcha_timeout)
        self.auth_timeout = int(self.auth_timeout)
        self.drip_timeout = int(self.drip_timeout)
        self.receipt_timeout = int(self.receipt_timeout)
        self.token_decimals = int(self.token_decimals)
        self.valid_seconds = int(self.valid_seconds)
        self.drip_amount = str(self.drip_amount)
        self.api_base = self.api_base.rstrip("/")
        self.token_contract = checksum(self.token_contract, "token_contract")
        self.relayer_contract = checksum(self.relayer_contract, "relayer_contract")
        if self.recipient_address:
            self.recipient_address = checksum(self.recipient_address, "recipient_address")

    @classmethod
    def from_dict(cls, raw):
        raw = dict(raw or {})
        kw = {}
        for section, mapping in SECTIONS.items():
            for key, val in (raw.pop(section, None) or {}).items():
                if key not in mapping:
                    raise ConfigurationError(f"unknown config key: {section}.{key}")
                kw[mapping[key]] = val
        known = {f.name for f in fields(cls)}
        for key, val in raw.items():
            if key not in known:
                raise ConfigurationError(f"unknown config key: {key}")
            kw[key] = val
        # YAML null means "use the default"
        return cls(**{k: v for k, v in kw.items() if v is not None})

    def api_url(self, path):
        return f"{self.api_base}{self.api_prefix}{path}"

    @property
    def challenge_url(self):
        return self.api_url("/auth/web3/challenge")

    @property
    def verify_url(self):
        return self.api_url("/auth/web3/verify")

    @property
    def drip_url(self):
        return self.api_url("/faucet/drip")

    @property
    def captcha_page_url(self):
        return f"{self.api_base}{self.captcha_page_path}"


def checksum(addr, name="address"):
    try:
        return Web3.to_checksum_address(addr)
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"{name} is not a valid address: {addr!r}") from e


def load_cfg(path="config.yaml"):
    p = Path(path)
    if not p.exists():
        return DripConfig()
    return DripConfig.from_dict(yaml.safe_load(p.read_text()))


def load_wallet(prompt="Private key: ", read=getpass.getpass):
    """Prompt once for the private key (no echo). Empty input aborts."""
    pk = (read(prompt) or "").strip()
    if not pk:
        raise ConfigurationError("private key is required")
    try:
        return Account.from_key(pk)
    except Exception:
        # bad hex, wrong length, out of curve range; don't echo the input back
        raise ConfigurationError("private key is not a valid secp256k1 key") from None
