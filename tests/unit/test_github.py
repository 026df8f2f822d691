"""Tests for GitHub integration."""

import json
from unittest.mock import Mock, patch

import pytest

from automatasaurus.github import (
    GhIssueTracker,
    GhResponseError,
    Issue,
    ensure_gh_cli,
    gh_command,
    issue_from_json,
    pull_request_from_json,
)
from automatasaurus.process import ExternalCommandError, ProcessResult


class TestEnsureGhCli:
    """Tests for ensure_gh_cli function."""

    @patch("automatasaurus.github.shutil.which")
    @patch("automatasaurus.github.run_process")
    def test_ensure_gh_cli_success(self, mock_run: Mock, mock_which: Mock) -> None:
        """Test ensure_gh_cli when gh is installed and authenticated."""
        mock_which.return_value = "/usr/bin/gh"
        mock_run.return_value = ProcessResult(command="gh")

        # Should not raise
        ensure_gh_cli()

        mock_which.assert_called_once_with("gh")
        assert mock_run.call_args[0][:2] == ("gh", ["auth", "status"])

    @patch("automatasaurus.github.shutil.which")
    def test_ensure_gh_cli_not_installed(self, mock_which: Mock) -> None:
        """Test ensure_gh_cli when gh is not installed."""
        mock_which.return_value = None

        with pytest.raises(RuntimeError, match="GitHub CLI.*not found"):
            ensure_gh_cli()

    @patch("automatasaurus.github.shutil.which")
    @patch("automatasaurus.github.run_process")
    def test_ensure_gh_cli_not_authenticated(self, mock_run: Mock, mock_which: Mock) -> None:
        """Test ensure_gh_cli when gh is not authenticated."""
        mock_which.return_value = "/usr/bin/gh"
        mock_run.side_effect = ExternalCommandError("gh", ["auth", "status"], 1)

        with pytest.raises(RuntimeError, match="Not authenticated"):
            ensure_gh_cli()


class TestGhCommand:
    """Tests for gh_command helper."""

    @patch("automatasaurus.github.run_process")
    def test_gh_command_success(self, mock_run: Mock) -> None:
        mock_run.return_value = ProcessResult(command="gh", stdout="test output\n")

        assert gh_command(["api", "user"]) == "test output"
        mock_run.assert_called_once_with("gh", ["api", "user"], cwd=None, echo=False)

    @patch("automatasaurus.github.run_process")
    def test_gh_command_failure(self, mock_run: Mock) -> None:
        mock_run.side_effect = ExternalCommandError("gh", ["api"], 1, stderr="Error: not found")

        with pytest.raises(ExternalCommandError, match="not found"):
            gh_command(["api", "nonexistent"])


class TestJsonParsing:
    """Tests for gh --json payload parsing."""

    def test_issue_from_json(self) -> None:
        issue = issue_from_json({
            "number": 42,
            "title": "Add dark mode",
            "body": "Users want dark mode",
            "state": "OPEN",
            "url": "https://github.com/user/repo/issues/42",
            "labels": [{"name": "bug"}, {"name": "priority:high"}],
        })

        assert issue.number == 42
        assert issue.title == "Add dark mode"
        assert issue.labels == ["bug", "priority:high"]
        assert issue.is_open

    def test_issue_null_body_and_string_labels(self) -> None:
        issue = issue_from_json({"number": 1, "title": "t", "body": None, "labels": ["ui", None]})
        assert issue.body == ""
        assert issue.labels == ["ui"]

    def test_closed_issue(self) -> None:
        assert issue_from_json({"number": 1, "title": "t", "state": "CLOSED"}).is_open is False

    def test_has_label_case_insensitive(self) -> None:
        assert Issue(number=1, title="t", labels=["Blocked"]).has_label("blocked")

    def test_pull_request_from_json(self) -> None:
        pr = pull_request_from_json({
            "number": 77,
            "state": "OPEN",
            "title": "Add export",
            "url": "https://github.com/user/repo/pull/77",
            "comments": [
                {"author": {"login": "architect-bot"}, "body": "✅ APPROVED - Architect", "createdAt": "2024-01-01"},
                {"author": None, "body": None},
            ],
        })

        assert pr.number == 77
        assert len(pr.comments) == 2
        assert pr.comments[0].author == "architect-bot"
        assert pr.comments[1].author == "unknown"
        assert pr.comments[1].body == ""


class TestGhIssueTracker:
    """Tests for GhIssueTracker."""

    @patch("automatasaurus.github.gh_command")
    def test_get_issue(self, mock_gh: Mock) -> None:
        mock_gh.return_value = json.dumps({"number": 5, "title": "t", "body": "b", "state": "CLOSED", "labels": []})

        issue = GhIssueTracker().get_issue(5)

        assert issue.number == 5
        assert not issue.is_open
        args = mock_gh.call_args[0][0]
        assert args[:3] == ["issue", "view", "5"]
        assert "--json" in args

    @patch("automatasaurus.github.gh_command")
    def test_list_open_issues(self, mock_gh: Mock) -> None:
        mock_gh.return_value = json.dumps([
            {"number": 1, "title": "a", "body": "", "state": "OPEN", "labels": []},
            {"number": 2, "title": "b", "body": "", "state": "OPEN", "labels": [{"name": "blocked"}]},
        ])

        issues = GhIssueTracker().list_open_issues(limit=200)

        assert [i.number for i in issues] == [1, 2]
        args = mock_gh.call_args[0][0]
        assert args[args.index("--state") + 1] == "open"
        assert args[args.index("--limit") + 1] == "200"

    @patch("automatasaurus.github.gh_command")
    def test_list_open_issues_empty_output(self, mock_gh: Mock) -> None:
        mock_gh.return_value = ""
        assert GhIssueTracker().list_open_issues() == []

    @patch("automatasaurus.github.gh_command")
    def test_get_pull_request(self, mock_gh: Mock) -> None:
        mock_gh.return_value = json.dumps({"number": 9, "state": "OPEN", "title": "t", "url": "u", "comments": []})

        pr = GhIssueTracker().get_pull_request(9)

        assert pr.number == 9
        assert mock_gh.call_args[0][0][:3] == ["pr", "view", "9"]

    @patch("automatasaurus.github.run_process")
    def test_merge_pull_request(self, mock_run: Mock) -> None:
        GhIssueTracker().merge_pull_request(9)

        assert mock_run.call_args[0][:2] == ("gh", ["pr", "merge", "9", "--squash", "--delete-branch"])

    @patch("automatasaurus.github.run_process")
    def test_merge_pull_request_failure(self, mock_run: Mock) -> None:
        mock_run.side_effect = ExternalCommandError("gh", [], 1, stderr="not mergeable")

        with pytest.raises(ExternalCommandError):
            GhIssueTracker().merge_pull_request(9, method="rebase")

    @patch("automatasaurus.github.ensure_gh_cli")
    def test_ensure_auth(self, mock_ensure: Mock, tmp_path) -> None:
        GhIssueTracker(cwd=tmp_path).ensure_auth()
        mock_ensure.assert_called_once_with(cwd=tmp_path)

    @pytest.mark.parametrize(
        "method,output",
        [
            ("get_issue", "not json"),
            ("get_issue", '{"title": "no number"}'),
            ("list_open_issues", '[{"number": "abc"}]'),
            ("get_pull_request", '{"number": 9, "comments": ["plain string"]}'),
        ],
    )
    @patch("automatasaurus.github.gh_command")
    def test_malformed_output_raises_response_error(self, mock_gh: Mock, method, output) -> None:
        mock_gh.return_value = output
        tracker = GhIssueTracker()

        with pytest.raises(GhResponseError, match="Unexpected output from gh"):
            if method == "list_open_issues":
                tracker.list_open_issues()
            else:
                getattr(tracker, method)(9)
