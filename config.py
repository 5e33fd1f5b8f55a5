import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

DEFAULT_API_URL       = "https://api.github.com"
DEFAULT_BOT_NAME      = "preview-deployments"
DEFAULT_WORKFLOW_FILE = "cd.yml"


@dataclass(frozen=True)
class Settings:
    github_token:   str = ""
    webhook_secret: str = ""
    api_url:        str = DEFAULT_API_URL
    bot_name:       str = DEFAULT_BOT_NAME
    workflow_file:  str = DEFAULT_WORKFLOW_FILE
    timeout:        float = 30.0
    log_level:      str = "INFO"

    @property
    def bot_login(self) -> str:
        """Login GitHub shows for comments posted by the app."""
        return f"{self.bot_name}[bot]"


def load_settings() -> Settings:
    """
    Reads settings from the environment (and .env, via load_dotenv).
    Called per request so a changed environment is picked up.
    """
    return Settings(
        github_token=os.environ.get("GITHUB_TOKEN", ""),
        webhook_secret=os.environ.get("GITHUB_WEBHOOK_SECRET", ""),
        api_url=os.environ.get("GITHUB_API_URL", DEFAULT_API_URL).rstrip("/"),
        bot_name=os.environ.get("BOT_NAME", DEFAULT_BOT_NAME),
        workflow_file=os.environ.get("DEPLOY_WORKFLOW_FILE", DEFAULT_WORKFLOW_FILE),
        timeout=float(os.environ.get("GITHUB_TIMEOUT", "30")),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )
