"""API clients for Jira and Tempo."""

import requests

from cache import Cache
from models import Category, IssueInfo, PostResponse, WorkAttribute

TEMPO_BASE_URL = "https://api.tempo.io/4"


class ApiError(Exception):
    """User-friendly API error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def _handle_api_error(response: requests.Response, service: str) -> str:
    """Convert HTTP errors to user-friendly messages."""
    status = response.status_code

    messages = {
        401: f"{service}: Authentication failed. Check your API token!",
        403: f"{service}: Access denied. Check your permissions or API token!",
        404: f"{service}: Resource not found.",
        429: f"{service}: Too many requests. Wait a moment and try again.",
        500: f"{service}: Server error. The service may be temporarily unavailable.",
        502: f"{service}: Bad gateway. The service may be temporarily unavailable.",
        503: f"{service}: Service unavailable. Try again later.",
    }

    return messages.get(status, f"{service}: HTTP {status} - {response.reason}")


def _request(method: str, url: str, service: str, **kwargs) -> requests.Response:
    """Send a request, turning network failures into ApiError."""
    try:
        return requests.request(method, url, timeout=kwargs.pop("timeout", 30), **kwargs)
    except requests.exceptions.ConnectionError:
        raise ApiError(f"{service}: Cannot connect to {url}. Check your network!")
    except requests.exceptions.Timeout:
        raise ApiError(f"{service}: Connection timed out. The server may be slow.")
    except requests.exceptions.RequestException as e:
        raise ApiError(f"{service}: Request to {url} failed: {e}")


def _json(response: requests.Response, service: str) -> dict:
    """Decode a JSON object body, turning anything else into ApiError."""
    try:
        data = response.json()
    except ValueError:
        raise ApiError(f"{service}: Response is not JSON. Check the site URL!", response.status_code)
    if not isinstance(data, dict):
        raise ApiError(f"{service}: Unexpected response format.", response.status_code)
    return data


def jira_base_url(site: str) -> str:
    """Accept either a full URL or just the Atlassian subdomain."""
    site = site.strip().rstrip("/")
    if "://" in site:
        return site
    if "." in site:
        return f"https://{site}"
    return f"https://{site}.atlassian.net"


class JiraClient:
    """Client for Jira REST API."""

    def __init__(self, cache: Cache):
        self.base_url = cache.jira_base_url.rstrip("/")
        self.email = cache.jira_email
        self.token = cache.jira_token
        self.account_field = cache.jira_account_field

    def _get(self, path: str, **kwargs) -> requests.Response:
        return _request(
            "GET",
            f"{self.base_url}{path}",
            "Jira",
            auth=(self.email, self.token),
            headers={"Accept": "application/json"},
            timeout=10,
            **kwargs,
        )

    def get_current_user_id(self) -> str:
        """Get the current user's Jira account ID."""
        r = self._get("/rest/api/3/myself")
        if not r.ok:
            raise ApiError(_handle_api_error(r, "Jira"), r.status_code)
        account_id = _json(r, "Jira").get("accountId")
        if not account_id:
            raise ApiError("Jira: Response has no accountId.", r.status_code)
        return account_id

    def get_issue_info(self, ticket: str) -> IssueInfo:
        """Fetch the numeric issue id and the Tempo account reference of a ticket."""
        r = self._get(f"/rest/api/3/issue/{ticket}", params={"fields": self.account_field})
        if r.status_code == 404:
            raise ApiError(f"Jira: Issue {ticket} not found.", 404)
        if not r.ok:
            raise ApiError(f"{_handle_api_error(r, 'Jira')} ({ticket})", r.status_code)

        data = _json(r, "Jira")
        fields = data.get("fields")
        account_field = fields.get(self.account_field) if isinstance(fields, dict) else None

        account_reference = None
        if isinstance(account_field, dict):
            ref = account_field.get("id") or account_field.get("key") or account_field.get("value")
            account_reference = str(ref) if ref else None
        elif account_field:
            account_reference = str(account_field)

        try:
            numeric_id = int(data["id"])
        except (KeyError, TypeError, ValueError):
            raise ApiError(f"Jira: Issue {ticket} has no numeric id in the response.", r.status_code)
        return IssueInfo(numeric_id=numeric_id, account_reference=account_reference)


class TempoClient:
    """Client for Tempo REST API."""

    def __init__(self, cache: Cache):
        self.token = cache.tempo_token

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/json",
        }

    def _get_json(self, path: str) -> dict:
        r = _request("GET", f"{TEMPO_BASE_URL}{path}", "Tempo", headers=self._headers())
        if not r.ok:
            raise ApiError(_handle_api_error(r, "Tempo"), r.status_code)
        return _json(r, "Tempo")

    def list_work_attributes(self) -> list[WorkAttribute]:
        """List the work attributes configured in Tempo (Account, Category, ...)."""
        data = self._get_json("/work-attributes")
        try:
            return [
                WorkAttribute(key=a["key"], name=a.get("name", ""), type=a.get("type", ""))
                for a in data.get("results", [])
            ]
        except (AttributeError, KeyError, TypeError):
            raise ApiError("Tempo: Unexpected work attribute list format.")

    def get_attribute_values(self, key: str) -> list[Category]:
        """Fetch the allowed values of a static-list work attribute."""
        data = self._get_json(f"/work-attributes/{key}")

        try:
            if "staticListValues" in data:
                return [
                    Category(value=v["value"], name=v.get("name") or v["value"])
                    for v in data["staticListValues"]
                    if not v.get("removed")
                ]

            names = data.get("names") or {}
            return [Category(value=v, name=names.get(v, v)) for v in data.get("values", [])]
        except (AttributeError, KeyError, TypeError):
            raise ApiError(f"Tempo: Unexpected values format for work attribute {key}.")

    def resolve_account_reference(self, reference: str) -> str:
        """Turn the account id found on a Jira issue into a Tempo account key."""
        data = self._get_json(f"/accounts/{reference}")
        key = data.get("key")
        if not key:
            raise ApiError(f"Tempo: Account {reference} has no key.")
        return key

    def post_worklog(self, payload: dict) -> PostResponse:
        """Create a worklog. Non-2xx responses are returned, not raised."""
        r = _request(
            "POST",
            f"{TEMPO_BASE_URL}/worklogs",
            "Tempo",
            headers={**self._headers(), "Content-Type": "application/json"},
            json=payload,
        )
        return PostResponse(status=r.status_code, body=r.text)
