#!/usr/bin/env python

import unittest
from unittest.mock import MagicMock, patch

from requests.exceptions import RequestException

from sno_iso.constants import RELEASE_STREAM_URL
from sno_iso.errors import VersionResolutionError
from sno_iso.openshift import get_latest_ocp_version, is_minor_version, resolve_ocp_version


class TestGetLatestOcpVersion(unittest.TestCase):
    """Test cases for get_latest_ocp_version function."""

    def _create_mock_response(self, json_data, raise_for_status=None):
        mock_response = MagicMock()
        mock_response.json.return_value = json_data
        if raise_for_status:
            mock_response.raise_for_status.side_effect = raise_for_status
        return mock_response

    @patch('sno_iso.openshift.requests.get')
    def test_selects_highest_patch(self, mock_get):
        """Verify the highest stable patch of the minor is returned."""
        mock_get.return_value = self._create_mock_response({
            '4-stable': ['4.14.1', '4.14.10', '4.14.3', '4.15.0', '4.14.11-rc.1']
        })

        self.assertEqual(get_latest_ocp_version('4.14', timeout=5), '4.14.10')
        mock_get.assert_called_once_with(RELEASE_STREAM_URL, timeout=5)

    @patch('sno_iso.openshift.requests.get')
    def test_no_versions(self, mock_get):
        mock_get.return_value = self._create_mock_response({'4-stable': ['4.15.0']})

        with self.assertRaises(VersionResolutionError):
            get_latest_ocp_version('4.14')

    @patch('sno_iso.openshift.requests.get')
    def test_missing_stream(self, mock_get):
        mock_get.return_value = self._create_mock_response({'4-dev-preview': []})

        with self.assertRaises(VersionResolutionError):
            get_latest_ocp_version('4.14')

    @patch('sno_iso.openshift.requests.get')
    def test_network_error(self, mock_get):
        """Verify request failures raise VersionResolutionError."""
        mock_get.side_effect = RequestException('Network error')

        with self.assertRaises(VersionResolutionError):
            get_latest_ocp_version('4.14')

    def test_invalid_tag(self):
        with self.assertRaises(ValueError):
            get_latest_ocp_version('4.14.3')


class TestResolveOcpVersion(unittest.TestCase):
    """Test cases for resolve_ocp_version function."""

    def test_is_minor_version(self):
        self.assertTrue(is_minor_version('4.14'))
        self.assertFalse(is_minor_version('4.14.3'))

    @patch('sno_iso.openshift.requests.get')
    def test_full_version_unchanged(self, mock_get):
        """Verify X.Y.Z versions are returned without a network call."""
        self.assertEqual(resolve_ocp_version('4.14.3'), '4.14.3')
        mock_get.assert_not_called()

    @patch('sno_iso.openshift.get_latest_ocp_version', return_value='4.15.2')
    def test_minor_version_resolved(self, mock_latest):
        self.assertEqual(resolve_ocp_version('4.15'), '4.15.2')


if __name__ == '__main__':
    unittest.main()
