import requests
from web3 import Web3
from web3.exceptions import TimeExhausted, Web3Exception

from drip_errors import ChainError

MAX_UINT256 = 2**256 - 1

ERC20_ABI = [
    {"name": "allowance", "type": "function", "stateMutability": "view",
     "inputs": [{"name": "owner", "type": "address"}, {"name": "spender", "type": "address"}],
     "outputs": [{"name": "", "type": "uint256"}]},
    {"name": "approve", "type": "function", "stateMutability": "nonpayable",
     "inputs": [{"name": "spender", "type": "address"}, {"name": "value", "type": "uint256"}],
     "outputs": [{"name": "", "type": "bool"}]},
]

CHAIN_ERRORS = (Web3Exception, requests.RequestException, ValueError)


class AllowanceManager:
    """Keeps the relayer's ERC-20 allowance non-zero for the wallet."""

    def __init__(self, w3, cfg):
        self.w3 = w3
        self.cfg = cfg
        self.token = w3.eth.contract(address=cfg.token_contract, abi=ERC20_ABI)

    def current(self, owner) -> int:
        try:
            return int(self.token.functions.allowance(owner, self.cfg.relayer_contract).call())
        except CHAIN_ERRORS as e:
            raise ChainError(f"allowance() read failed: {e}") from e

    def approve_max(self, acct) -> str:
        w3 = self.w3
        try:
            tx = self.token.functions.approve(self.cfg.relayer_contract, MAX_UINT256).build_transaction({
                "chainId": self.cfg.chain_id,
                "from": acct.address,
                "nonce": w3.eth.get_transaction_count(acct.address),
                "gasPrice": w3.eth.gas_price,
            })
            signed = acct.sign_transaction(tx)
            txh = Web3.to_hex(w3.eth.send_raw_transaction(signed.raw_transaction))
        except CHAIN_ERRORS as e:
            raise ChainError(f"approve failed: {e}") from e
        print("[ALLOW] approve tx:", txh)
        try:
            rec = w3.eth.wait_for_transaction_receipt(txh, timeout=self.cfg.receipt_timeout)
        except TimeExhausted as e:
            raise ChainError(f"approve {txh} not mined within {self.cfg.receipt_timeout}s") from e
        except CHAIN_ERRORS as e:
            raise ChainError(f"receipt for {txh} failed: {e}") from e
        if rec["status"] != 1:
            raise ChainError(f"approve {txh} reverted")
        return txh

    def ensure(self, acct):
        """Approve MAX_UINT256 when the allowance is zero. Returns the tx hash, or None if skipped."""
        allowance = self.current(acct.address)
        if allowance > 0:
            print(f"[ALLOW] allowance already set ({allowance}), skip")
            return None
        print("[ALLOW] allowance is 0, sending approve")
        txh = self.approve_max(acct)
        print("[ALLOW] approve confirmed")
        return txh

