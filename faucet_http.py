import requests

from drip_errors import HttpError, ServiceError


def new_session() -> requests.Session:
    s = requests.Session()
    s.headers.update({"Content-Type": "application/json", "Accept": "application/json"})
    return s


def post_json(session, url, payload, timeout, headers=None, allow_text=False):
    """POST `payload` as JSON and return the decoded body.

    Non-2xx -> HttpError. A body that isn't JSON -> ServiceError, or the raw
    text when allow_text is set. Transport errors from requests propagate.
    """
    r = session.post(url, json=payload, headers=headers or {}, timeout=timeout)
    if not r.ok:
        raise HttpError(url, r.status_code, r.text or "")
    try:
        return r.json()
    except ValueError as e:
        if allow_text:
            return r.text
        raise ServiceError(f"non-JSON response from {url}: {(r.text or '')[:200]}") from e
