import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

from ffbuilder.errors import BuildStepFailed
from ffbuilder.source import GitSourceRepository, repo_slug

REMOTE = "https://github.com/FFmpeg/FFmpeg.git"


def fake_git(origin="https://github.com/FFmpeg/FFmpeg.git", clone_rc=0, update_rc=0):
    def _run(command, **kwargs):
        if command[:2] == ["git", "clone"]:
            return "", "fatal: clone failed" if clone_rc else "", clone_rc
        if "get-url" in command:
            return origin + "\n", "", 0
        if command[0] == "git":
            return "", "error" if update_rc else "", update_rc
        return "", "", 0
    return _run


class TestRepoSlug(unittest.TestCase):

    def test_forms(self):
        self.assertEqual(repo_slug("https://github.com/FFmpeg/FFmpeg.git"), "FFmpeg/FFmpeg")
        self.assertEqual(repo_slug("git@github.com:FFmpeg/FFmpeg.git"), "FFmpeg/FFmpeg")
        self.assertEqual(repo_slug("https://git.example.org/mirror/ffmpeg/"), "mirror/ffmpeg")


@patch("ffbuilder.source.logger")
class TestGitSourceRepository(unittest.TestCase):

    def setUp(self):
        self.src = tempfile.mkdtemp()
        self.checkout = os.path.join(self.src, "ffmpeg")
        self.repo = GitSourceRepository(self.checkout, REMOTE)

    def tearDown(self):
        shutil.rmtree(self.src)

    def test_fresh_clone(self, mock_logger):
        """Test that a missing checkout is cloned with a blob filter."""
        with patch("ffbuilder.source.run_shell_command", side_effect=fake_git()) as mock_run:
            self.repo.ensure("master")
        mock_run.assert_called_once_with(
            ["git", "clone", "--filter=blob:none", "--branch", "master", REMOTE, self.checkout]
        )

    def test_clone_failure_is_fatal(self, mock_logger):
        """Test that a failed clone raises with git's exit code."""
        with patch("ffbuilder.source.run_shell_command", side_effect=fake_git(clone_rc=128)):
            with self.assertRaises(BuildStepFailed) as cm:
                self.repo.ensure("master")
        self.assertEqual(cm.exception.exit_code, 128)

    @patch("ffbuilder.source.time.time", return_value=1700000000)
    def test_foreign_checkout_moved_aside(self, mock_time, mock_logger):
        """Test that a checkout of another repository is moved to .bad-<epoch>."""
        os.makedirs(os.path.join(self.checkout, ".git"))
        with patch("ffbuilder.source.run_shell_command", side_effect=fake_git(origin="https://github.com/me/builder.git")) as mock_run:
            self.repo.ensure("master")

        self.assertTrue(os.path.isdir(self.checkout + ".bad-1700000000"))
        self.assertFalse(os.path.exists(self.checkout))
        self.assertEqual(mock_run.call_args[0][0][:2], ["git", "clone"])

    @patch("ffbuilder.source.time.time", return_value=1700000001)
    def test_tree_without_configure_moved_aside(self, mock_time, mock_logger):
        """Test that a directory without configure is moved aside."""
        os.makedirs(self.checkout)
        with patch("ffbuilder.source.run_shell_command", side_effect=fake_git()):
            self.repo.ensure("master")
        self.assertTrue(os.path.isdir(self.checkout + ".bad-1700000001"))

    def test_upstream_checkout_is_updated(self, mock_logger):
        """Test that an upstream checkout is fetched, checked out and reset."""
        os.makedirs(os.path.join(self.checkout, ".git"))
        with patch("ffbuilder.source.run_shell_command", side_effect=fake_git()) as mock_run:
            self.repo.ensure("release/7.1")

        commands = [c[0][0] for c in mock_run.call_args_list]
        self.assertIn(["git", "-C", self.checkout, "fetch", "--depth=1", "origin", "release/7.1"], commands)
        self.assertIn(["git", "-C", self.checkout, "checkout", "-q", "release/7.1"], commands)
        self.assertIn(["git", "-C", self.checkout, "reset", "--hard", "origin/release/7.1"], commands)
        self.assertTrue(os.path.isdir(self.checkout))
        mock_logger.warning.assert_not_called()

    def test_update_failures_only_warn(self, mock_logger):
        """Test that update failures are warnings, not errors."""
        os.makedirs(os.path.join(self.checkout, ".git"))
        with patch("ffbuilder.source.run_shell_command", side_effect=fake_git(update_rc=1)):
            self.repo.ensure("master")
        self.assertEqual(mock_logger.warning.call_count, 3)

    def test_clean(self, mock_logger):
        with patch("ffbuilder.source.run_shell_command", side_effect=fake_git(update_rc=1)) as mock_run:
            self.repo.clean()
        mock_run.assert_any_call(["make", "distclean"], cwd=self.checkout)
        mock_run.assert_any_call(["git", "-C", self.checkout, "clean", "-xdf", "-q"])


if __name__ == "__main__":
    unittest.main()
