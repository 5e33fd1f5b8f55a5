import logging

import requests

from config import Settings, load_settings

logger = logging.getLogger(__name__)

PER_PAGE = 100


def _headers(settings: Settings) -> dict:
    return {
        "Authorization": f"Bearer {settings.github_token}",
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28"
    }


def _get_paginated(url: str, settings: Settings, items_key: str = None) -> list:
    """
    Follows the Link: rel="next" header until the last page.
    GitHub lists comments oldest-first, pages keep that order.
    """
    items  = []
    params = {"per_page": PER_PAGE}

    while url:
        response = requests.get(url, headers=_headers(settings), params=params, timeout=settings.timeout)
        response.raise_for_status()
        data = response.json()
        items.extend(data[items_key] if items_key else data)

        url    = response.links.get("next", {}).get("url")
        params = None  # the next link already carries the query string

    return items


def list_issue_comments(owner: str, repo: str, issue_number: int, settings: Settings = None) -> list:
    settings = settings or load_settings()
    url = f"{settings.api_url}/repos/{owner}/{repo}/issues/{issue_number}/comments"
    return _get_paginated(url, settings)


def list_jobs_for_workflow_run(owner: str, repo: str, run_id: int, settings: Settings = None) -> list:
    settings = settings or load_settings()
    url = f"{settings.api_url}/repos/{owner}/{repo}/actions/runs/{run_id}/jobs"
    return _get_paginated(url, settings, items_key="jobs")


def download_job_logs(owner: str, repo: str, job_id: int, settings: Settings = None) -> str:
    """
    Raw log text of one job. GitHub answers with a redirect to the log
    storage; requests follows it and drops the Authorization header.
    """
    settings = settings or load_settings()
    url = f"{settings.api_url}/repos/{owner}/{repo}/actions/jobs/{job_id}/logs"

    response = requests.get(url, headers=_headers(settings), timeout=settings.timeout)
    response.raise_for_status()
    # logs are UTF-8 but served as text/plain without a charset
    response.encoding = "utf-8"
    return response.text


def create_comment(owner: str, repo: str, issue_number: int, body: str, settings: Settings = None) -> dict:
    settings = settings or load_settings()
    url = f"{settings.api_url}/repos/{owner}/{repo}/issues/{issue_number}/comments"

    response = requests.post(url, headers=_headers(settings), json={"body": body}, timeout=settings.timeout)
    response.raise_for_status()
    comment = response.json()
    logger.info("Created comment %s on %s/%s#%s", comment.get("id"), owner, repo, issue_number)
    return comment


def update_comment(owner: str, repo: str, comment_id: int, body: str, settings: Settings = None) -> dict:
    settings = settings or load_settings()
    url = f"{settings.api_url}/repos/{owner}/{repo}/issues/comments/{comment_id}"

    response = requests.patch(url, headers=_headers(settings), json={"body": body}, timeout=settings.timeout)
    response.raise_for_status()
    logger.info("Updated comment %s on %s/%s", comment_id, owner, repo)
    return response.json()
