import hashlib
import hmac
import json

import pytest

from config import Settings

WEBHOOK_SECRET = "test-secret"


@pytest.fixture
def settings():
    return Settings(
        github_token="ghs_test",
        webhook_secret=WEBHOOK_SECRET,
        api_url="https://api.github.test",
        bot_name="preview-deployments",
        workflow_file="cd.yml",
        timeout=5,
    )


@pytest.fixture
def github_env(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "ghs_test")
    monkeypatch.setenv("GITHUB_WEBHOOK_SECRET", WEBHOOK_SECRET)
    monkeypatch.setenv("GITHUB_API_URL", "https://api.github.test")
    monkeypatch.setenv("BOT_NAME", "preview-deployments")
    monkeypatch.setenv("DEPLOY_WORKFLOW_FILE", "cd.yml")


@pytest.fixture
def client(github_env):
    from app import create_app

    flask_app = create_app()
    flask_app.config["TESTING"] = True
    return flask_app.test_client()


def sign(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


@pytest.fixture
def post_event(client):
    def _post(event: str, payload: dict, signature: str = None):
        body = json.dumps(payload).encode()
        return client.post(
            "/webhook/github",
            data=body,
            content_type="application/json",
            headers={
                "X-GitHub-Event": event,
                "X-GitHub-Delivery": "delivery-1",
                "X-Hub-Signature-256": signature if signature is not None else sign(body),
            },
        )
    return _post


def make_job(job_id: int, name: str, conclusion=None, html_url=None) -> dict:
    return {
        "id": job_id,
        "name": name,
        "conclusion": conclusion,
        "html_url": html_url if html_url is not None else f"https://github.com/acme/shop/actions/runs/1/job/{job_id}",
    }


def make_workflow_run_payload(action="completed", path=".github/workflows/cd.yml", pull_requests=None, run_id=77):
    if pull_requests is None:
        pull_requests = [{"number": 12}]
    return {
        "action": action,
        "workflow_run": {
            "id": run_id,
            "path": path,
            "pull_requests": pull_requests,
        },
        "repository": {"name": "shop", "owner": {"login": "acme"}},
    }
