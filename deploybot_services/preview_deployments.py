"""
Keeps one comment per pull request that lists every app deployed by the
CD workflow, with its status, log link, preview links and last update.

Flow for a workflow_run event:
1. Ignore runs without a pull request or from another workflow file
2. Find the bot's earlier comment and parse its table
3. Merge the run's "Deploy <app>" jobs into the rows
4. Update that comment, or create one if there was none
"""

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Callable, Optional

from config import Settings, load_settings
from deploybot_services import github_service
from deploybot_services.deployment_table import (
    comment_contains_deployment_table,
    parse_deployment_table,
    parse_preview_links_from_logs,
    parse_timestamp,
    render_deployment_table,
    utc_now_iso,
)
from models import PLACEHOLDER, AppStatus, AppStatusLine

logger = logging.getLogger(__name__)

DEPLOY_JOB_PATTERN = re.compile(r"^Deploy (\S+)")

ISSUE_GREETING = "Thanks for opening this issue!"


@dataclass
class HandlerResult:
    action:     str                      # created / updated / skipped
    comment_id: Optional[int] = None
    reason:     str = ""
    rows:       list = field(default_factory=list)

    @property
    def handled(self) -> bool:
        return self.action != "skipped"

    def to_dict(self):
        return {
            "handled": self.handled,
            "action": self.action,
            "comment_id": self.comment_id,
            "reason": self.reason,
            "apps": [row.to_dict() for row in self.rows],
        }


def is_deployment_workflow(path, workflow_file: str) -> bool:
    """True when the last segment of the workflow path is ``workflow_file``."""
    return (path or "").split("/")[-1] == workflow_file


def first_pull_request_number(workflow_run: dict) -> Optional[int]:
    pull_requests = workflow_run.get("pull_requests") or []
    if not pull_requests:
        return None
    return pull_requests[0].get("number")


def was_comment_generated_by_bot(login, bot_login: str) -> bool:
    return login == bot_login


def find_bot_comment(comments: list, bot_login: str) -> Optional[dict]:
    """
    First comment, in listing order (oldest first), that the bot wrote and
    that holds a deployment table.

    Only one such comment is expected per pull request. If a second one
    exists it is never read or updated.
    """
    for comment in comments:
        login = (comment.get("user") or {}).get("login")
        if was_comment_generated_by_bot(login, bot_login) and comment_contains_deployment_table(comment.get("body")):
            return comment
    return None


def reconcile_app_lines(
    existing: list,
    jobs: list,
    fetch_logs: Callable[[int], str],
    now: Callable[[], str] = utc_now_iso,
) -> list:
    """
    Merges the jobs of one workflow run into the rows of the table.

    Rows are keyed by app name; a job for a known app overwrites its status,
    log link, timestamp and preview link. A preview link is only kept for a
    successful job, so any other status resets it to "#". Skipped jobs and
    jobs not named "Deploy <app>" are left out. ``existing`` is not mutated.

    Returns rows sorted most recently updated first.
    """
    rows = {row.name: replace(row) for row in existing}

    for job in jobs:
        match = DEPLOY_JOB_PATTERN.match(job.get("name") or "")
        if not match:
            continue

        app_name = match.group(1)
        status   = AppStatus.from_conclusion(job.get("conclusion"))
        if status is AppStatus.SKIPPED:
            continue

        preview_link = PLACEHOLDER
        if status is AppStatus.SUCCESSFUL:
            preview_link = parse_preview_links_from_logs(fetch_logs(job["id"]))

        job_url    = job.get("html_url") or PLACEHOLDER
        updated_at = now()

        row = rows.get(app_name)
        if row is None:
            rows[app_name] = AppStatusLine(
                name=app_name,
                status=status,
                job_url=job_url,
                updated_at=updated_at,
                preview_link=preview_link,
            )
        else:
            row.status       = status
            row.job_url      = job_url
            row.updated_at   = updated_at
            row.preview_link = preview_link

    return sorted(rows.values(), key=lambda row: parse_timestamp(row.updated_at), reverse=True)


def handle_preview_deployments_event(payload: dict, settings: Settings = None) -> HandlerResult:
    """
    Handles workflow_run.in_progress and workflow_run.completed.

    GitHub API errors propagate. A bot comment whose table cannot be
    parsed raises MalformedTableError before anything is written.
    """
    settings     = settings or load_settings()
    workflow_run = payload["workflow_run"]

    pr_number = first_pull_request_number(workflow_run)
    if not pr_number:
        logger.debug("Workflow run %s has no pull request, skipping", workflow_run.get("id"))
        return HandlerResult(action="skipped", reason="no pull request")

    if not is_deployment_workflow(workflow_run.get("path"), settings.workflow_file):
        logger.debug("Workflow %s is not %s, skipping", workflow_run.get("path"), settings.workflow_file)
        return HandlerResult(action="skipped", reason="not the deployment workflow")

    owner = payload["repository"]["owner"]["login"]
    repo  = payload["repository"]["name"]

    def fetch_logs(job_id):
        return github_service.download_job_logs(owner, repo, job_id, settings=settings)

    comments    = github_service.list_issue_comments(owner, repo, pr_number, settings=settings)
    bot_comment = find_bot_comment(comments, settings.bot_login)

    if bot_comment:
        existing = parse_deployment_table(bot_comment["body"])
        jobs     = github_service.list_jobs_for_workflow_run(owner, repo, workflow_run["id"], settings=settings)
        rows     = reconcile_app_lines(existing, jobs, fetch_logs)

        github_service.update_comment(
            owner, repo, bot_comment["id"], render_deployment_table(rows), settings=settings
        )
        return HandlerResult(action="updated", comment_id=bot_comment["id"], rows=rows)

    jobs = github_service.list_jobs_for_workflow_run(owner, repo, workflow_run["id"], settings=settings)
    rows = reconcile_app_lines([], jobs, fetch_logs)
    if not rows:
        logger.debug("No deploy jobs in run %s, not creating a comment", workflow_run["id"])
        return HandlerResult(action="skipped", reason="no deploy jobs")

    comment = github_service.create_comment(
        owner, repo, pr_number, render_deployment_table(rows), settings=settings
    )
    return HandlerResult(action="created", comment_id=comment.get("id"), rows=rows)


def handle_issue_opened(payload: dict, settings: Settings = None) -> HandlerResult:
    """Greets every new issue."""
    settings = settings or load_settings()
    owner = payload["repository"]["owner"]["login"]
    repo  = payload["repository"]["name"]

    comment = github_service.create_comment(
        owner, repo, payload["issue"]["number"], ISSUE_GREETING, settings=settings
    )
    return HandlerResult(action="created", comment_id=comment.get("id"))
