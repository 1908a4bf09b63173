"""Git command construction and background runner behavior."""

from __future__ import annotations

import shutil
import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lazybranch import commands
from lazybranch.branch import CommitRef, LocalBranch, RemoteBranch, UpstreamInfo
from lazybranch.errors import ActionPreconditionError


def _local(name: str, upstream: str | None = None) -> LocalBranch:
    return LocalBranch(
        name=name,
        is_current=False,
        commit_sha="abc123",
        upstream=UpstreamInfo.parse(upstream) if upstream is not None else None,
    )


class CommandBuilderTests(unittest.TestCase):
    def test_listing_commands(self) -> None:
        self.assertEqual(commands.list_local_command().args, ("branch", "-vv"))
        self.assertEqual(commands.list_local_command().kind, commands.LIST_LOCAL)
        self.assertEqual(commands.list_remote_command().args, ("branch", "-r", "-v"))
        self.assertEqual(commands.list_remote_command().kind, commands.LIST_REMOTE)

    def test_switch_and_previous(self) -> None:
        self.assertEqual(commands.switch_command(_local("dev")).args, ("switch", "dev"))
        self.assertEqual(commands.switch_previous_command().args, ("switch", "-"))
        self.assertEqual(commands.switch_previous_command().kind, commands.SWITCH)

    def test_create_uses_query_text(self) -> None:
        command = commands.create_command("feature/new")

        self.assertEqual(command.args, ("checkout", "-b", "feature/new"))
        self.assertEqual(command.kind, commands.CREATE)

    def test_create_rejects_blank_name(self) -> None:
        with self.assertRaises(ActionPreconditionError):
            commands.create_command("  ")

    def test_delete_and_force_delete(self) -> None:
        self.assertEqual(commands.delete_command(_local("old")).args, ("branch", "-d", "old"))
        self.assertEqual(commands.delete_command(_local("old"), force=True).args, ("branch", "-D", "old"))

    def test_fetch_fast_forwards_from_upstream(self) -> None:
        command = commands.fetch_command(_local("topic", "origin/feature/topic: behind 3"))

        self.assertEqual(command.args, ("fetch", "origin", "feature/topic:topic"))
        self.assertEqual(command.kind, commands.FETCH)

    def test_fetch_without_upstream_is_rejected(self) -> None:
        with self.assertRaises(ActionPreconditionError) as ctx:
            commands.fetch_command(_local("topic"))

        self.assertEqual(str(ctx.exception), "Local branch does not track any remote branch")

    def test_fetch_with_local_upstream_is_rejected(self) -> None:
        with self.assertRaises(ActionPreconditionError) as ctx:
            commands.fetch_command(_local("topic", "main"))

        self.assertEqual(str(ctx.exception), "Invalid upstream")

    def test_track_remote(self) -> None:
        branch = RemoteBranch("origin/dev", CommitRef("abc"))

        command = commands.track_command(branch)

        self.assertEqual(command.args, ("checkout", "--track", "origin/dev"))
        self.assertEqual(command.kind, commands.TRACK_REMOTE)

    def test_log_command_places_extra_args_before_branch(self) -> None:
        self.assertEqual(
            commands.log_command_args("dev", ("--oneline", "--graph")),
            ["log", "--oneline", "--graph", "dev"],
        )


class RunGitTests(unittest.TestCase):
    def test_spawn_failure_becomes_result_without_status(self) -> None:
        tag = commands.CommandTag(commands.LIST_LOCAL, 1)

        result = commands.run_git("/nonexistent/git-binary", commands.list_local_command(), Path("."), tag)

        self.assertIsNone(result.exit_status)
        self.assertFalse(result.succeeded)
        self.assertIn(b"Failed to run", result.stderr)
        self.assertEqual(result.tag, tag)

    def test_run_git_disables_terminal_prompts(self) -> None:
        completed = subprocess.CompletedProcess(args=[], returncode=0, stdout=b"out", stderr=b"")
        tag = commands.CommandTag(commands.FETCH, 3)
        with mock.patch("lazybranch.commands.subprocess.run", return_value=completed) as run:
            result = commands.run_git("git", commands.switch_previous_command(), Path("/repo"), tag)

        self.assertTrue(result.succeeded)
        self.assertEqual(result.stdout, b"out")
        args = run.call_args
        self.assertEqual(args.args[0], ["git", "switch", "-"])
        self.assertEqual(args.kwargs["cwd"], Path("/repo"))
        self.assertEqual(args.kwargs["env"]["GIT_TERMINAL_PROMPT"], "0")


class CommandRunnerTests(unittest.TestCase):
    def test_submit_returns_tag_and_result_arrives_via_queue(self) -> None:
        completed = subprocess.CompletedProcess(args=[], returncode=0, stdout=b"* main abc x\n", stderr=b"")
        runner = commands.CommandRunner()
        with mock.patch("lazybranch.commands.subprocess.run", return_value=completed):
            first = runner.submit(commands.list_local_command(), Path("."))
            second = runner.submit(commands.list_remote_command(), Path("."))
            results = [runner.wait(timeout=5), runner.wait(timeout=5)]

        self.assertNotEqual(first.request_id, second.request_id)
        self.assertEqual({result.tag for result in results}, {first, second})
        self.assertEqual(runner.poll(), [])
        self.assertEqual(runner.in_flight_kinds(), set())

    def test_wait_times_out_with_none(self) -> None:
        runner = commands.CommandRunner()

        self.assertIsNone(runner.wait(timeout=0.01))


@unittest.skipIf(shutil.which("git") is None, "git is not installed")
class CommandRunnerGitRepoTests(unittest.TestCase):
    def test_failed_git_command_reports_stderr(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            runner = commands.CommandRunner()
            runner.submit(commands.GitCommand(("branch", "-d", "does-not-exist"), commands.DELETE), Path(tmp))
            result = runner.wait(timeout=10)

        self.assertIsNotNone(result)
        self.assertEqual(result.tag.kind, commands.DELETE)
        self.assertFalse(result.succeeded)
        self.assertTrue(result.stderr)


if __name__ == "__main__":
    unittest.main()
