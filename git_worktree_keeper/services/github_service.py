"""GitHub integration through the gh CLI"""
import json
from dataclasses import dataclass
from typing import Optional

from git_worktree_keeper.constants import GITHUB_REF_PREFIX, ISSUE_BRANCH_TEMPLATE
from git_worktree_keeper.exceptions import ExternalCommandError, ToolUnavailableError
from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.utils.subprocess_utils import run_command

logger = get_logger(__name__)


@dataclass
class IssueInfo:
    number: int
    title: str
    url: str
    is_pull_request: bool = False


@dataclass
class PrInfo:
    number: int
    title: str
    url: str
    head_ref_name: str
    is_cross_repository: bool = False


def parse_github_ref(branch: str) -> Optional[int]:
    """Return N for a ``#N`` branch argument, None for anything else."""
    if not branch.startswith(GITHUB_REF_PREFIX):
        return None
    number = branch[len(GITHUB_REF_PREFIX):]
    if not number.isdigit():
        return None
    return int(number)


def build_issue_branch(number: int) -> str:
    return ISSUE_BRANCH_TEMPLATE.format(number=number)


def pr_fallback_branch(number: int, head_ref_name: str) -> str:
    """Branch name for a fork PR whose head branch name is already taken locally."""
    return f"pr-{number}-{head_ref_name.replace('/', '-')}"


class GitHubService:
    """Looks up issues and pull requests with ``gh``."""

    def __init__(self, repo_path: Optional[str] = None):
        self.repo_path = repo_path

    def is_available(self) -> bool:
        try:
            run_command(["gh", "--version"])
            return True
        except (ToolUnavailableError, ExternalCommandError):
            return False

    def _view(self, kind: str, number: int, fields: str) -> dict:
        result = run_command(
            ["gh", kind, "view", str(number), "--json", fields],
            cwd=self.repo_path,
        )
        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ExternalCommandError(f"gh {kind} view {number}", 0,
                                       f"Could not parse gh output: {e}") from e

    def issue_info(self, number: int) -> IssueInfo:
        """Look up an issue. Pull requests are reported as issues with ``is_pull_request``."""
        data = self._view("issue", number, "number,title,url,isPullRequest")
        logger.debug(f"[GitHub] issue #{number}: {data}")
        return IssueInfo(
            number=data.get("number", number),
            title=data.get("title", ""),
            url=data.get("url", ""),
            is_pull_request=bool(data.get("isPullRequest", False)),
        )

    def pr_info(self, number: int) -> PrInfo:
        data = self._view("pr", number, "number,title,url,headRefName,isCrossRepository")
        logger.debug(f"[GitHub] PR #{number}: {data}")
        if not data.get("headRefName"):
            raise ExternalCommandError(f"gh pr view {number}", 0, "No headRefName in gh output")
        return PrInfo(
            number=data.get("number", number),
            title=data.get("title", ""),
            url=data.get("url", ""),
            head_ref_name=data["headRefName"],
            is_cross_repository=bool(data.get("isCrossRepository", False)),
        )
