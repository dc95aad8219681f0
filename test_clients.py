"""Tests for the Jira and Tempo API clients (HTTP mocked)."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from cache import Cache
from clients import ApiError, JiraClient, TempoClient, jira_base_url
from models import Category, IssueInfo, WorkAttribute

CACHE = Cache(
    tempo_token="tempo-token",
    jira_base_url="https://acme.atlassian.net",
    jira_email="me@acme.com",
    jira_token="jira-token",
)


def response(status: int = 200, json_data=None, text: str = "", reason: str = "") -> MagicMock:
    r = MagicMock(spec=requests.Response)
    r.status_code = status
    r.ok = 200 <= status < 400
    r.reason = reason
    r.text = text
    r.json.return_value = json_data
    return r


class TestJiraBaseUrl:

    @pytest.mark.parametrize(
        "site, url",
        [
            ("acme", "https://acme.atlassian.net"),
            ("acme.atlassian.net", "https://acme.atlassian.net"),
            ("https://jira.acme.com/", "https://jira.acme.com"),
            ("  acme  ", "https://acme.atlassian.net"),
        ],
    )
    def test_normalizes(self, site, url):
        assert jira_base_url(site) == url


class TestJiraClient:

    def test_current_user(self):
        with patch("clients.requests.request", return_value=response(json_data={"accountId": "abc-123"})) as req:
            assert JiraClient(CACHE).get_current_user_id() == "abc-123"

        method, url = req.call_args.args
        assert method == "GET"
        assert url == "https://acme.atlassian.net/rest/api/3/myself"
        assert req.call_args.kwargs["auth"] == ("me@acme.com", "jira-token")

    def test_current_user_auth_failure(self):
        with patch("clients.requests.request", return_value=response(401)):
            with pytest.raises(ApiError, match="Authentication failed") as exc:
                JiraClient(CACHE).get_current_user_id()
        assert exc.value.status_code == 401

    def test_issue_info_with_account(self):
        data = {"id": "10042", "key": "FK-3080", "fields": {"customfield_10048": {"id": 7, "value": "Acme Dev"}}}
        with patch("clients.requests.request", return_value=response(json_data=data)) as req:
            info = JiraClient(CACHE).get_issue_info("FK-3080")

        assert info == IssueInfo(numeric_id=10042, account_reference="7")
        assert req.call_args.args[1].endswith("/rest/api/3/issue/FK-3080")
        assert req.call_args.kwargs["params"] == {"fields": "customfield_10048"}

    def test_issue_info_without_account(self):
        data = {"id": "10042", "fields": {"customfield_10048": None}}
        with patch("clients.requests.request", return_value=response(json_data=data)):
            assert JiraClient(CACHE).get_issue_info("FK-3080") == IssueInfo(10042, None)

    def test_custom_account_field(self):
        cache = Cache(jira_base_url="https://acme.atlassian.net", jira_account_field="customfield_1")
        data = {"id": "1", "fields": {"customfield_1": {"key": "ACC"}}}
        with patch("clients.requests.request", return_value=response(json_data=data)):
            assert JiraClient(cache).get_issue_info("FK-1").account_reference == "ACC"

    def test_issue_not_found(self):
        with patch("clients.requests.request", return_value=response(404)):
            with pytest.raises(ApiError, match="FK-9 not found"):
                JiraClient(CACHE).get_issue_info("FK-9")

    def test_connection_error(self):
        with patch("clients.requests.request", side_effect=requests.exceptions.ConnectionError()):
            with pytest.raises(ApiError, match="Cannot connect"):
                JiraClient(CACHE).get_issue_info("FK-9")

    def test_timeout(self):
        with patch("clients.requests.request", side_effect=requests.exceptions.Timeout()):
            with pytest.raises(ApiError, match="timed out"):
                JiraClient(CACHE).get_current_user_id()

    def test_invalid_url(self):
        with patch("clients.requests.request", side_effect=requests.exceptions.InvalidURL("bad host")):
            with pytest.raises(ApiError, match="failed: bad host"):
                JiraClient(CACHE).get_current_user_id()

    def test_html_login_page(self):
        r = response(text="<html>Log in</html>")
        r.json.side_effect = ValueError("Expecting value")
        with patch("clients.requests.request", return_value=r):
            with pytest.raises(ApiError, match="not JSON"):
                JiraClient(CACHE).get_issue_info("FK-3080")

    @pytest.mark.parametrize("data", [{}, {"id": None}, {"id": "abc"}, ["FK-3080"]])
    def test_issue_without_numeric_id(self, data):
        with patch("clients.requests.request", return_value=response(json_data=data)):
            with pytest.raises(ApiError):
                JiraClient(CACHE).get_issue_info("FK-3080")

    def test_current_user_without_account_id(self):
        with patch("clients.requests.request", return_value=response(json_data={"displayName": "Me"})):
            with pytest.raises(ApiError, match="accountId"):
                JiraClient(CACHE).get_current_user_id()


class TestTempoClient:

    def test_bearer_token(self):
        data = {"results": []}
        with patch("clients.requests.request", return_value=response(json_data=data)) as req:
            TempoClient(CACHE).list_work_attributes()
        assert req.call_args.kwargs["headers"]["Authorization"] == "Bearer tempo-token"
        assert req.call_args.args[1] == "https://api.tempo.io/4/work-attributes"

    def test_list_work_attributes(self):
        data = {
            "results": [
                {"key": "_Account_", "name": "Account", "type": "ACCOUNT"},
                {"key": "_Category_", "name": "Category", "type": "STATIC_LIST"},
            ]
        }
        with patch("clients.requests.request", return_value=response(json_data=data)):
            attributes = TempoClient(CACHE).list_work_attributes()
        assert attributes == [
            WorkAttribute("_Account_", "Account", "ACCOUNT"),
            WorkAttribute("_Category_", "Category", "STATIC_LIST"),
        ]

    def test_attribute_values_from_names(self):
        data = {"key": "_Category_", "values": ["dev", "mtg"], "names": {"dev": "Development", "mtg": "Meeting"}}
        with patch("clients.requests.request", return_value=response(json_data=data)):
            values = TempoClient(CACHE).get_attribute_values("_Category_")
        assert values == [Category("dev", "Development"), Category("mtg", "Meeting")]

    def test_attribute_values_from_static_list(self):
        data = {
            "staticListValues": [
                {"value": "dev", "name": "Development"},
                {"value": "old", "name": "Old", "removed": True},
            ]
        }
        with patch("clients.requests.request", return_value=response(json_data=data)):
            values = TempoClient(CACHE).get_attribute_values("_Category_")
        assert values == [Category("dev", "Development")]

    def test_resolve_account(self):
        with patch("clients.requests.request", return_value=response(json_data={"id": 7, "key": "ACME"})) as req:
            assert TempoClient(CACHE).resolve_account_reference("7") == "ACME"
        assert req.call_args.args[1] == "https://api.tempo.io/4/accounts/7"

    def test_resolve_account_failure(self):
        with patch("clients.requests.request", return_value=response(404)):
            with pytest.raises(ApiError):
                TempoClient(CACHE).resolve_account_reference("7")

    def test_post_worklog_success(self):
        payload = {"issueId": 1, "timeSpentSeconds": 1800}
        with patch("clients.requests.request", return_value=response(201, text='{"tempoWorklogId": 9}')) as req:
            result = TempoClient(CACHE).post_worklog(payload)
        assert result.status == 201
        assert result.ok
        assert req.call_args.args == ("POST", "https://api.tempo.io/4/worklogs")
        assert req.call_args.kwargs["json"] == payload

    def test_post_worklog_failure_is_returned(self):
        with patch("clients.requests.request", return_value=response(400, text="Issue is closed")):
            result = TempoClient(CACHE).post_worklog({})
        assert result.status == 400
        assert result.body == "Issue is closed"
        assert not result.ok

    def test_malformed_attribute_list(self):
        with patch("clients.requests.request", return_value=response(json_data={"results": [{"name": "Account"}]})):
            with pytest.raises(ApiError, match="Unexpected"):
                TempoClient(CACHE).list_work_attributes()

    def test_non_json_account(self):
        r = response(text="<html></html>")
        r.json.side_effect = ValueError("Expecting value")
        with patch("clients.requests.request", return_value=r):
            with pytest.raises(ApiError, match="Tempo: Response is not JSON"):
                TempoClient(CACHE).resolve_account_reference("7")
