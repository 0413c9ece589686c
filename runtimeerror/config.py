import os

from pydantic import model_validator
from pydantic_settings import BaseSettings

DEFAULT_SPARKLINE_URL = (
    "http://sparklines-bitworking.appspot.com/spark.cgi?type=impulse&height=40"
    "&upper={MAX}&above-color=red&below-color=gray&width=5&limits={MIN},{MAX}&d={RAW}"
)


class Settings(BaseSettings):
    # Occurrence chart embedded in ticket bodies
    SPARKLINE_URL: str = DEFAULT_SPARKLINE_URL
    SPARKLINE_DAYS: int = 7

    # GitHub REST API
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_ISSUE_LABEL: str = "runtimeerror"
    GITHUB_WONTFIX_LABEL: str = "wontfix"
    GITHUB_SEARCH_PAGES: int = 3

    # Jira Cloud REST API (the account secret is the API token)
    JIRA_SITE_URL: str = ""
    JIRA_USER_EMAIL: str = ""
    JIRA_ISSUE_TYPE: str = "Bug"
    JIRA_ISSUE_LABEL: str = "runtimeerror"

    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Outbound notifications; leave SMTP_HOST empty to only log them
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_STARTTLS: bool = True
    SMTP_TIMEOUT_SECONDS: float = 30.0
    NOTIFY_FROM: str = "runtimeerror@localhost"

    model_config = {"env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _clamp_sparkline_days(self):
        """A chart needs at least the current day."""
        if self.SPARKLINE_DAYS < 1:
            self.SPARKLINE_DAYS = 1
        return self


def resolve_secret(secret: str) -> str:
    """Swap an addressed secret for the ``<secret>_SECRET`` environment value, if set."""
    return os.environ.get(f"{secret}_SECRET") or secret


settings = Settings()
