#!/usr/bin/env python

import io
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock
from unittest.mock import patch

from sno_iso.builder import BuildResult
from sno_iso.errors import EmbedError
from sno_iso.main import build_request, main, parse_args


class TestMain(unittest.TestCase):
    """Test cases for the command line entry point."""

    def setUp(self):
        env = mock.patch.dict('os.environ', {}, clear=True)
        env.start()
        self.addCleanup(env.stop)
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        (self.tmp / 'ps.json').write_text(json.dumps({'auths': {}}))
        (self.tmp / 'key.pub').write_text('ssh-rsa AAAA me\n')
        (self.tmp / 'install-config.yaml').write_text('apiVersion: v1\n')
        self.base_args = [
            '--pull-secret', str(self.tmp / 'ps.json'),
            '--ssh-pub-key', str(self.tmp / 'key.pub'),
            '--install-config', str(self.tmp / 'install-config.yaml'),
            '--output-root', str(self.tmp),
        ]

    def tearDown(self):
        self._tmp.cleanup()

    def test_environment_defaults(self):
        """Verify options fall back to the original environment variables."""
        env = {
            'OCP_VERSION': '4.14.3',
            'PULL_SECRET': '/keys/ps.json',
            'SSH_PUB_KEY': '/keys/id.pub',
            'CLUSTER_NAME': 'envsno',
            'ARCH': 'aarch64',
            'LOCAL_YQ': '1',
        }
        with mock.patch.dict('os.environ', env, clear=True):
            args = parse_args([])

        self.assertEqual(args.ocp_version, '4.14.3')
        self.assertEqual(args.pull_secret, '/keys/ps.json')
        self.assertEqual(args.ssh_pub_key, '/keys/id.pub')
        self.assertEqual(args.cluster_name, 'envsno')
        self.assertEqual(args.architecture, 'aarch64')
        self.assertTrue(args.local_yq)

    def test_local_yq_off_by_default(self):
        with mock.patch.dict('os.environ', {}, clear=True):
            self.assertFalse(parse_args([]).local_yq)

    @patch('sno_iso.main.ImageBuilder')
    def test_missing_version_fails_without_side_effects(self, mock_builder):
        """Verify validation errors exit non-zero before building."""
        with mock.patch.dict('os.environ', {}, clear=True):
            self.assertEqual(main(self.base_args), 1)
        mock_builder.assert_not_called()
        self.assertEqual(sorted(p.name for p in self.tmp.iterdir()), ['install-config.yaml', 'key.pub', 'ps.json'])

    @patch('sno_iso.main.ImageBuilder')
    def test_dry_run(self, mock_builder):
        """Verify a dry run validates and returns without building."""
        self.assertEqual(main(['--version', '4.14.3', '--dry-run'] + self.base_args), 0)
        mock_builder.assert_not_called()
        self.assertFalse((self.tmp / 'ocp_greyerof-4-14-3').exists())

    @patch('sno_iso.main.ImageBuilder')
    def test_successful_build(self, mock_builder):
        out = self.tmp / 'ocp_greyerof-4-14-3'
        mock_builder.return_value.build.return_value = BuildResult(
            output_dir=out,
            iso=out / 'rhcos-live-ocp-4.14.3.iso',
            kubeconfig=out / 'ocp/auth/kubeconfig',
            kubeadmin_password=out / 'ocp/auth/kubeadmin-password',
        )

        self.assertEqual(main(['--version', '4.14.3'] + self.base_args), 0)
        request = mock_builder.call_args.args[0]
        self.assertEqual(request.cluster_name, 'greyerof-4-14-3')

    @patch('sno_iso.main.ImageBuilder')
    def test_build_failure_exits_non_zero(self, mock_builder):
        mock_builder.return_value.build.side_effect = EmbedError('coreos-installer failed')

        self.assertEqual(main(['--version', '4.14.3'] + self.base_args), 1)

    @patch('sno_iso.main.resolve_ocp_version', return_value='4.15.2')
    def test_minor_version_resolved_before_naming(self, mock_resolve):
        """Verify the derived cluster name uses the resolved version."""
        request = build_request(parse_args(['--version', '4.15'] + self.base_args))

        self.assertEqual(request.ocp_version, '4.15.2')
        self.assertEqual(request.cluster_name, 'greyerof-4-15-2')
        mock_resolve.assert_called_once_with('4.15')

    @patch('sno_iso.main.resolve_ocp_version')
    def test_no_resolve_version(self, mock_resolve):
        request = build_request(parse_args(['--version', '4.15', '--no-resolve-version'] + self.base_args))

        self.assertEqual(request.ocp_version, '4.15')
        mock_resolve.assert_not_called()

    @patch('sno_iso.main.ImageBuilder')
    def test_undecodable_pull_secret_exits_non_zero(self, mock_builder):
        """Verify a non-UTF-8 pull secret fails validation instead of crashing."""
        bad = self.tmp / 'bad.json'
        bad.write_bytes(b'\xff\xfe{}')

        self.assertEqual(main(['--version', '4.14.3', '--dry-run'] + self.base_args + ['--pull-secret', str(bad)]), 1)
        mock_builder.assert_not_called()

    def test_timeout_from_environment(self):
        with mock.patch.dict('os.environ', {'COMMAND_TIMEOUT': '90'}, clear=True):
            self.assertEqual(parse_args([]).timeout, 90)

    @patch('sys.stderr', new_callable=io.StringIO)
    def test_invalid_timeout_is_a_usage_error(self, mock_stderr):
        """Verify a non-numeric COMMAND_TIMEOUT exits with status 2."""
        with mock.patch.dict('os.environ', {'COMMAND_TIMEOUT': 'abc'}, clear=True):
            with self.assertRaises(SystemExit) as ctx:
                parse_args([])
        self.assertEqual(ctx.exception.code, 2)
        self.assertIn('--timeout', mock_stderr.getvalue())


if __name__ == '__main__':
    unittest.main()
