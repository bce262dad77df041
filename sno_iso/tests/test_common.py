#!/usr/bin/env python

import subprocess
import unittest
from unittest.mock import patch

from sno_iso.common import run
from sno_iso.errors import BuildError, DownloadError


class TestRun(unittest.TestCase):
    """Test cases for the subprocess wrapper."""

    @patch('sno_iso.common.subprocess.run')
    def test_success_returns_completed_process(self, mock_run):
        """Verify the completed process is returned unchanged."""
        completed = subprocess.CompletedProcess(['true'], 0, stdout='ok', stderr='')
        mock_run.return_value = completed

        self.assertIs(run(['true'], capture_output=True, timeout=5), completed)
        mock_run.assert_called_once_with(
            ['true'], check=True, capture_output=True, text=True,
            input=None, cwd=None, env=None, timeout=5,
        )

    @patch('sno_iso.common.subprocess.run')
    def test_called_process_error_is_wrapped(self, mock_run):
        """Verify failures become the requested error class with output included."""
        mock_run.side_effect = subprocess.CalledProcessError(1, ['yq'], output='out', stderr='boom')

        with self.assertRaises(DownloadError) as ctx:
            run(['yq', '.a'], error_cls=DownloadError)
        self.assertIn('Command failed: yq .a', str(ctx.exception))
        self.assertIn('boom', str(ctx.exception))

    @patch('sno_iso.common.subprocess.run')
    def test_timeout_is_wrapped(self, mock_run):
        """Verify timeouts are reported as build errors."""
        mock_run.side_effect = subprocess.TimeoutExpired(['sleep'], 3)

        with self.assertRaises(BuildError) as ctx:
            run(['sleep', '10'], timeout=3)
        self.assertIn('timed out after 3s', str(ctx.exception))

    @patch('sno_iso.common.subprocess.run')
    def test_missing_executable_is_wrapped(self, mock_run):
        """Verify a missing binary is reported as a build error."""
        mock_run.side_effect = FileNotFoundError('podman')

        with self.assertRaises(BuildError) as ctx:
            run(['podman', 'run'])
        self.assertIn('Executable not found: podman', str(ctx.exception))


if __name__ == '__main__':
    unittest.main()
