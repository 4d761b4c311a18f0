#!/usr/bin/env python3
import time
from web3 import Web3

from drip_config import load_cfg, load_wallet
from captcha_solve import CaptchaSolver
from web3_login import LoginClient
from approve_allowance import AllowanceManager
from faucet_claim import build_payload, send_drip
from faucet_http import new_session


def run(cfg, acct, session, w3, sleep=time.sleep, clock=time.time):
    """captcha -> login -> allowance -> drip. Any failure propagates to the caller."""
    print("Wallet:", acct.address)

    # 1) captcha
    print("== Solve captcha ==")
    solver = CaptchaSolver.from_cfg(session, cfg, sleep=sleep)
    turnstile = solver.solve(cfg.captcha_page_url, cfg.captcha_site_key)

    # 2) challenge -> sign -> verify
    print("== Web3 login ==")
    bearer = LoginClient(session, cfg).login(acct, turnstile)

    # 3) approve relayer if allowance == 0
    print("== Check allowance ==")
    AllowanceManager(w3, cfg).ensure(acct)

    # 4) signed transfer authorization -> drip
    print("== Send drip ==")
    payload = build_payload(cfg, acct, clock=clock)
    print("[DRIP] to:", payload["recipientAddress"])
    resp = send_drip(session, cfg, payload, bearer)
    print("[DRIP] resp:", resp)
    return resp


def main():
    cfg = load_cfg()
    acct = load_wallet()
    w3 = Web3(Web3.HTTPProvider(cfg.rpc_url))
    with new_session() as session:
        run(cfg, acct, session, w3)
    print("Done.")


if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        print("DRIP error:", repr(e))
