import time

from drip_errors import CaptchaTimeoutError, ConfigurationError, ServiceError
from faucet_http import post_json


class CaptchaSolver:
    """Turnstile solving through a createTask/getTaskResult service (CapMonster API).

    Polls every `poll_interval` seconds, at most `max_polls` times; no backoff.
    """

    def __init__(self, session, api_key, service_url="https://api.capmonster.cloud",
                 task_type="TurnstileTaskProxyless", poll_interval=3, max_polls=40,
                 timeout=20, sleep=time.sleep):
        self.session = session
        self.api_key = api_key
        self.service_url = service_url.rstrip("/")
        self.task_type = task_type
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.timeout = timeout
        self.sleep = sleep

    @classmethod
    def from_cfg(cls, session, cfg, sleep=time.sleep):
        return cls(session, cfg.captcha_api_key,
                   service_url=cfg.captcha_service_url,
                   task_type=cfg.captcha_task_type,
                   poll_interval=cfg.captcha_poll_interval,
                   max_polls=cfg.captcha_max_polls,
                   timeout=cfg.captcha_timeout,
                   sleep=sleep)

    def create_task(self, website_url, site_key) -> str:
        if not self.api_key or not site_key:
            raise ConfigurationError("captcha api_key or site_key not set in config.yaml")
        data = post_json(self.session, f"{self.service_url}/createTask", {
            "clientKey": self.api_key,
            "task": {
                "type": self.task_type,
                "websiteURL": website_url,
                "websiteKey": site_key,
            },
        }, timeout=self.timeout)
        check_error(data, "createTask")
        task_id = data.get("taskId")
        if not task_id:
            raise ServiceError("No taskId returned from createTask")
        return task_id

    def poll(self, task_id) -> str:
        for i in range(1, self.max_polls + 1):
            self.sleep(self.poll_interval)
            data = post_json(self.session, f"{self.service_url}/getTaskResult",
                             {"clientKey": self.api_key, "taskId": task_id},
                             timeout=self.timeout)
            check_error(data, "getTaskResult")
            if data.get("status") == "ready":
                return solution_token(data)
            print(f"[CAPTCHA] waiting... ({i}/{self.max_polls})")
        raise CaptchaTimeoutError(
            f"captcha not solved after {self.max_polls} polls (~{self.max_polls * self.poll_interval:.0f}s)")

    def solve(self, website_url, site_key) -> str:
        task_id = self.create_task(website_url, site_key)
        print("[CAPTCHA] task:", task_id)
        token = self.poll(task_id)
        print("[CAPTCHA] solved")
        return token


def check_error(data, op):
    if not isinstance(data, dict):
        raise ServiceError(f"{op}: unexpected response {data!r}"[:200])
    if data.get("errorId", 0) != 0:
        raise ServiceError(f"{op} failed: {data.get('errorCode', 'UNKNOWN')} "
                           f"{data.get('errorDescription', '')}".strip())


def solution_token(data):
    # Documented shape is solution.token; some task types hand back the token as solution itself.
    sol = data.get("solution")
    if isinstance(sol, dict) and sol.get("token"):
        return sol["token"]
    if isinstance(sol, str) and sol:
        return sol
    raise ServiceError("ready result without a solution token")

