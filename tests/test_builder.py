import os
import shutil
import tempfile
import unittest
from unittest.mock import patch, MagicMock

from fakes import FakeHost, FakeProbe
from ffbuilder import builder
from ffbuilder import config
from ffbuilder.config import BuildSettings
from ffbuilder.errors import BuildStepFailed, UnsupportedArchitecture


class TestResolveBuild(unittest.TestCase):

    def setUp(self):
        self.root = tempfile.mkdtemp()
        self.logger_patch = patch("ffbuilder.resolver.logger")
        self.mock_resolver_logger = self.logger_patch.start()
        self.builder_logger_patch = patch("ffbuilder.builder.logger")
        self.builder_logger_patch.start()

    def tearDown(self):
        self.logger_patch.stop()
        self.builder_logger_patch.stop()
        shutil.rmtree(self.root)

    def settings(self, **kwargs):
        kwargs.setdefault("env", {"PATH": "/usr/bin"})
        return BuildSettings(root_dir=self.root, **kwargs)

    def test_aarch64_defaults(self):
        """Test that aarch64 resolves to arm64 with the default output dir."""
        resolved = builder.resolve_build(self.settings(arch="aarch64"), host=FakeHost(brew="/opt/homebrew"), probe=FakeProbe({"dav1d"}))

        self.assertEqual(resolved.arch.canonical_name, "arm64")
        self.assertEqual(resolved.arch.output_tag, "arm64")
        self.assertEqual(resolved.paths.output_dir, os.path.join(self.root, "macos", "out-arm64"))
        self.assertTrue(os.path.isdir(resolved.paths.output_dir))
        self.assertTrue(os.path.isdir(resolved.paths.source_dir))
        self.assertEqual(resolved.deployment_target, "12.0")
        self.assertEqual(resolved.jobs, 8)
        self.assertIn("--enable-libdav1d", resolved.configure_args)
        self.assertTrue(resolved.env["PATH"].startswith("/opt/homebrew/opt/llvm/bin"))

    def test_native_arch_from_host(self):
        resolved = builder.resolve_build(self.settings(), host=FakeHost(machine="x86_64", tools={"nasm"}), probe=FakeProbe())
        self.assertEqual(resolved.arch.output_tag, "x64")

    @patch("ffbuilder.builder.find_x86_brew_prefix", return_value=None)
    def test_amd64_without_intel_homebrew(self, mock_find):
        """Test that amd64 without Intel Homebrew warns and enables no libraries."""
        resolved = builder.resolve_build(
            self.settings(arch="amd64", jobs=2),
            host=FakeHost(tools={"nasm"}),
            probe=FakeProbe(),
        )

        mock_find.assert_called_once_with(None)
        self.mock_resolver_logger.warning.assert_any_call(
            "Intel Homebrew not found. x86_64 build will likely be minimal (framework-only)."
        )
        self.assertEqual(resolved.env["CFLAGS"], "-arch x86_64 -mmacosx-version-min=12.0")
        self.assertFalse(any(arg.startswith("--enable-lib") for arg in resolved.configure_args))
        self.assertEqual(resolved.jobs, 2)

    def test_unknown_arch_touches_nothing(self):
        """Test that an unknown arch creates no directories and runs no probes."""
        host = MagicMock()
        probe = MagicMock()
        with self.assertRaises(UnsupportedArchitecture):
            builder.resolve_build(self.settings(arch="sparc"), host=host, probe=probe)
        self.assertFalse(os.path.exists(os.path.join(self.root, "macos")))
        host.brew_prefix.assert_not_called()
        host.can_run_x86_64.assert_not_called()
        probe.exists.assert_not_called()

    def test_same_inputs_same_args(self):
        settings = self.settings(arch="arm64", nonfree=True)
        probe = FakeProbe({"libx264", "opus", "fdk-aac"})
        first = builder.resolve_build(settings, host=FakeHost(), probe=probe)
        second = builder.resolve_build(settings, host=FakeHost(), probe=probe)
        self.assertEqual(first.configure_args, second.configure_args)
        self.assertEqual(first.configure_args[-2:], ["--enable-nonfree", "--enable-libfdk_aac"])

    def test_deployment_target_from_environment(self):
        settings = self.settings(arch="arm64", env={"PATH": "/usr/bin", "MACOSX_DEPLOYMENT_TARGET": "14.0"})
        resolved = builder.resolve_build(settings, host=FakeHost(), probe=FakeProbe())
        self.assertEqual(resolved.deployment_target, "14.0")
        self.assertIn("-mmacosx-version-min=14.0", resolved.env["CFLAGS"])

    def test_environment_deployment_target_beats_toml(self):
        """Test that MACOSX_DEPLOYMENT_TARGET wins over deployment_target in ffbuilder.toml."""
        config.save_config({"build": {"deployment_target": "13.0"}}, path=self.root)
        settings = config.load_settings(
            self.root, overrides={"arch": "arm64"}, environ={"PATH": "/usr/bin", "MACOSX_DEPLOYMENT_TARGET": "14.0"}
        )
        resolved = builder.resolve_build(settings, host=FakeHost(), probe=FakeProbe())
        self.assertEqual(resolved.deployment_target, "14.0")
        self.assertEqual(resolved.env["MACOSX_DEPLOYMENT_TARGET"], "14.0")


class TestBuildFFmpeg(unittest.TestCase):

    def setUp(self):
        self.root = tempfile.mkdtemp()
        self.patches = [
            patch("ffbuilder.resolver.logger"),
            patch("ffbuilder.builder.logger"),
            patch("ffbuilder.builder.packager.package_zip"),
            patch("ffbuilder.builder.packager.merge_universal"),
        ]
        mocks = [p.start() for p in self.patches]
        self.mock_package_zip, self.mock_merge = mocks[2], mocks[3]
        self.repo = MagicMock()
        self.build_system = MagicMock()

    def tearDown(self):
        for p in self.patches:
            p.stop()
        shutil.rmtree(self.root)

    def run_build(self, **kwargs):
        settings = BuildSettings(root_dir=self.root, env={"PATH": "/usr/bin"}, **kwargs)
        return builder.build_ffmpeg(
            settings, host=FakeHost(), probe=FakeProbe({"libx264"}), repo=self.repo, build_system=self.build_system
        )

    def test_steps_run_in_order(self):
        """Test that fetch, clean, configure, make and install all run with the resolved env."""
        resolved = self.run_build(arch="arm64", branch="release/7.1", jobs=4)

        self.repo.ensure.assert_called_once_with("release/7.1")
        self.repo.clean.assert_called_once_with()
        self.build_system.configure.assert_called_once_with(resolved.configure_args, resolved.env)
        self.build_system.compile.assert_called_once_with(4, resolved.env)
        self.build_system.install.assert_called_once_with(resolved.env)
        self.mock_merge.assert_not_called()
        self.mock_package_zip.assert_called_once_with(
            resolved.paths.output_dir, os.path.join(self.root, "artifacts"), "arm64"
        )

    def test_universal_merges_default_dirs(self):
        self.run_build(arch="x64", universal=True)
        work_dir = os.path.join(self.root, "macos")
        self.mock_merge.assert_called_once_with(
            os.path.join(work_dir, "out-arm64"),
            os.path.join(work_dir, "out-x64"),
            os.path.join(work_dir, "out-universal"),
        )

    def test_failed_step_propagates(self):
        """Test that a failed make stops the build before install and packaging."""
        self.build_system.compile.side_effect = BuildStepFailed("make", 2)
        with self.assertRaises(BuildStepFailed) as cm:
            self.run_build(arch="arm64")
        self.assertEqual(cm.exception.exit_code, 2)
        self.build_system.install.assert_not_called()
        self.mock_package_zip.assert_not_called()


class TestCheckEnvironment(unittest.TestCase):

    @patch("ffbuilder.builder.find_x86_brew_prefix", return_value=None)
    @patch("ffbuilder.builder.logger")
    def test_missing_required_tool(self, mock_logger, mock_find):
        """Test that a missing pkg-config fails the environment check."""
        settings = BuildSettings(root_dir="/tmp", env={})
        host = FakeHost(tools={"git", "make", "clang"})
        self.assertFalse(builder.check_environment(settings, host=host))
        mock_logger.error.assert_called_once_with("pkg-config: not found (required)")

    @patch("ffbuilder.builder.find_x86_brew_prefix", return_value="/usr/local")
    @patch("ffbuilder.builder.logger")
    def test_all_present(self, mock_logger, mock_find):
        settings = BuildSettings(root_dir="/tmp", env={})
        host = FakeHost(tools={"git", "make", "pkg-config", "clang"})
        self.assertTrue(builder.check_environment(settings, host=host))
        mock_logger.error.assert_not_called()


if __name__ == "__main__":
    unittest.main()
