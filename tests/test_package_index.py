import unittest
import requests
from unittest.mock import patch, MagicMock
from buildenv.errors import NotFound, TransportError
from buildenv.utils import PackageIndexClient

HOST = "https://conan.example.com"


def json_response(body, status_code=200):
    resp = MagicMock(status_code=status_code)
    resp.json.return_value = body
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} error")
    return resp


class TestPackageIndexClient(unittest.TestCase):

    def setUp(self):
        self.client = PackageIndexClient(HOST + "/", timeout=5)

    def test_package_url_encodes_segments(self):
        self.assertEqual(
            self.client.package_url("boost", "1.81.0"),
            f"{HOST}/v1/conans/boost/1.81.0/boost/1.81.0",
        )
        self.assertEqual(
            self.client.package_url("my lib", "1.0+x/y"),
            f"{HOST}/v1/conans/my%20lib/1.0%2Bx%2Fy/my%20lib/1.0%2Bx%2Fy",
        )

    @patch('requests.get')
    def test_lookup_candidates(self, mock_get):
        mock_get.return_value = json_response({
            "abc123": {"settings": {"arch": "x86_64", "compiler": "gcc"}},
            "def456": {"settings": {"arch": "x86", "compiler": "gcc"}},
        })

        candidates = self.client.lookup_candidates("boost", "1.81.0")

        mock_get.assert_called_once_with(f"{HOST}/v1/conans/boost/1.81.0/boost/1.81.0/search", timeout=5)
        self.assertEqual(sorted(candidates), ["abc123", "def456"])
        self.assertEqual(candidates["abc123"].settings["arch"], "x86_64")
        self.assertEqual(candidates["def456"].package_hash, "def456")

    @patch('requests.get')
    def test_lookup_empty_body(self, mock_get):
        mock_get.return_value = json_response(None)
        self.assertEqual(self.client.lookup_candidates("boost", "1.81.0"), {})

    @patch('requests.get')
    def test_lookup_404_is_not_found(self, mock_get):
        mock_get.return_value = json_response({}, status_code=404)
        with self.assertRaises(NotFound) as ctx:
            self.client.lookup_candidates("zlib", "1.3")
        self.assertEqual(ctx.exception.library_id, "zlib")

    @patch('requests.get')
    def test_lookup_server_error_is_transport_error(self, mock_get):
        mock_get.return_value = json_response({}, status_code=500)
        with self.assertRaises(TransportError) as ctx:
            self.client.lookup_candidates("zlib", "1.3")
        self.assertEqual(ctx.exception.status_code, 500)

    @patch('requests.get')
    def test_lookup_connection_error_is_transport_error(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError("refused")
        with self.assertRaises(TransportError):
            self.client.lookup_candidates("zlib", "1.3")

    @patch('requests.get')
    def test_lookup_invalid_json_is_transport_error(self, mock_get):
        resp = json_response(None)
        resp.json.side_effect = ValueError("Expecting value")
        mock_get.return_value = resp
        with self.assertRaises(TransportError):
            self.client.lookup_candidates("zlib", "1.3")

    @patch('requests.get')
    def test_lookup_malformed_settings_is_transport_error(self, mock_get):
        mock_get.return_value = json_response({"abc": {"settings": "Linux"}})
        with self.assertRaises(TransportError) as ctx:
            self.client.lookup_candidates("boost", "1.81.0")
        self.assertEqual(ctx.exception.library_id, "boost")

    @patch('requests.get')
    def test_lookup_malformed_build_entry_is_transport_error(self, mock_get):
        mock_get.return_value = json_response({"abc": ["Linux", "gcc"]})
        with self.assertRaises(TransportError):
            self.client.lookup_candidates("boost", "1.81.0")

    @patch('requests.get')
    def test_resolve_download_location(self, mock_get):
        mock_get.return_value = json_response({
            "conan_package.tgz": "https://files.example.com/boost.tgz",
            "conaninfo.txt": "https://files.example.com/conaninfo.txt",
        })

        url = self.client.resolve_download_location("boost", "1.81.0", "abc123")

        self.assertEqual(url, "https://files.example.com/boost.tgz")
        mock_get.assert_called_once_with(
            f"{HOST}/v1/conans/boost/1.81.0/boost/1.81.0/packages/abc123/download_urls", timeout=5
        )

    @patch('requests.get')
    def test_resolve_without_package_key_is_transport_error(self, mock_get):
        mock_get.return_value = json_response({"conaninfo.txt": "https://files.example.com/conaninfo.txt"})
        with self.assertRaises(TransportError):
            self.client.resolve_download_location("boost", "1.81.0", "abc123")

    @patch('requests.get')
    def test_resolve_404_is_transport_error(self, mock_get):
        mock_get.return_value = json_response({}, status_code=404)
        with self.assertRaises(TransportError) as ctx:
            self.client.resolve_download_location("boost", "1.81.0", "abc123")
        self.assertEqual(ctx.exception.status_code, 404)

if __name__ == '__main__':
    unittest.main()
