"""Tests for the GitHub REST calls, with requests mocked out."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from deploybot_services import github_service


def fake_response(json_data=None, text="", next_url=None, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data
    response.text = text
    response.links = {"next": {"url": next_url}} if next_url else {}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return response


class TestListing:
    def test_list_issue_comments_follows_pagination(self, settings):
        page_two_url = "https://api.github.test/repositories/1/issues/12/comments?page=2"
        pages = [
            fake_response([{"id": 1}, {"id": 2}], next_url=page_two_url),
            fake_response([{"id": 3}]),
        ]
        with patch.object(github_service.requests, "get", side_effect=pages) as mock_get:
            comments = github_service.list_issue_comments("acme", "shop", 12, settings=settings)

        assert [c["id"] for c in comments] == [1, 2, 3]
        first, second = mock_get.call_args_list
        assert first.args[0] == "https://api.github.test/repos/acme/shop/issues/12/comments"
        assert first.kwargs["params"] == {"per_page": 100}
        assert first.kwargs["headers"]["Authorization"] == "Bearer ghs_test"
        assert second.args[0] == page_two_url
        assert second.kwargs["params"] is None

    def test_list_jobs_reads_jobs_key(self, settings):
        page = fake_response({"total_count": 2, "jobs": [{"id": 5}, {"id": 6}]})
        with patch.object(github_service.requests, "get", return_value=page) as mock_get:
            jobs = github_service.list_jobs_for_workflow_run("acme", "shop", 77, settings=settings)

        assert [job["id"] for job in jobs] == [5, 6]
        assert mock_get.call_args.args[0] == "https://api.github.test/repos/acme/shop/actions/runs/77/jobs"

    def test_download_job_logs_returns_text(self, settings):
        with patch.object(github_service.requests, "get", return_value=fake_response(text="log line\n")) as mock_get:
            logs = github_service.download_job_logs("acme", "shop", 6, settings=settings)

        assert logs == "log line\n"
        assert mock_get.call_args.args[0] == "https://api.github.test/repos/acme/shop/actions/jobs/6/logs"
        assert mock_get.call_args.kwargs["timeout"] == 5

    def test_download_job_logs_decodes_utf8(self, settings):
        response = requests.Response()
        response.status_code = 200
        response._content = "deploy_url=https://web.example \u2705 d\u00e9ploy\u00e9\n".encode("utf-8")
        response.headers["Content-Type"] = "text/plain"
        # what requests picks for text/plain without a charset
        response.encoding = "ISO-8859-1"

        with patch.object(github_service.requests, "get", return_value=response):
            logs = github_service.download_job_logs("acme", "shop", 6, settings=settings)

        assert logs == "deploy_url=https://web.example \u2705 d\u00e9ploy\u00e9\n"


class TestWrites:
    def test_create_comment(self, settings):
        with patch.object(github_service.requests, "post", return_value=fake_response({"id": 501})) as mock_post:
            comment = github_service.create_comment("acme", "shop", 12, "hello", settings=settings)

        assert comment["id"] == 501
        assert mock_post.call_args.args[0] == "https://api.github.test/repos/acme/shop/issues/12/comments"
        assert mock_post.call_args.kwargs["json"] == {"body": "hello"}

    def test_update_comment(self, settings):
        with patch.object(github_service.requests, "patch", return_value=fake_response({"id": 400})) as mock_patch:
            github_service.update_comment("acme", "shop", 400, "table", settings=settings)

        assert mock_patch.call_args.args[0] == "https://api.github.test/repos/acme/shop/issues/comments/400"
        assert mock_patch.call_args.kwargs["json"] == {"body": "table"}


def test_http_errors_propagate(settings):
    with patch.object(github_service.requests, "get", return_value=fake_response(status_code=404)):
        with pytest.raises(requests.HTTPError):
            github_service.list_issue_comments("acme", "shop", 12, settings=settings)


def test_settings_loaded_from_environment(github_env):
    with patch.object(github_service.requests, "get", return_value=fake_response([])) as mock_get:
        github_service.list_issue_comments("acme", "shop", 12)

    assert mock_get.call_args.args[0].startswith("https://api.github.test/")
    assert mock_get.call_args.kwargs["headers"]["X-GitHub-Api-Version"] == "2022-11-28"
