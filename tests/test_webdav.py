"""WebDAV 传输层、列目录与递归扫描测试。"""

import logging
from unittest.mock import MagicMock, patch

import pytest
import requests

from webdav_media.config import ServerConfig
from webdav_media.exceptions import ProtocolError, TransportError
from webdav_media.filters import VideoFilter
from webdav_media.webdav import PROPFIND_BODY, WebDAVClient, WebDAVTransport, is_success


class TestTransport:
    def test_request_passes_auth_and_disables_tls_verification(self) -> None:
        transport = WebDAVTransport(auth=("admin", "secret"))
        fake_response = MagicMock(status_code=207, content=b"<xml/>")

        with patch("webdav_media.webdav.requests.request", return_value=fake_response) as mock_request:
            response = transport.request("PROPFIND", "http://nas/x/", {"Depth": "1"}, "<body/>")

        assert response.status == 207
        assert response.body == b"<xml/>"
        kwargs = mock_request.call_args.kwargs
        assert kwargs["method"] == "PROPFIND"
        assert kwargs["auth"] == ("admin", "secret")
        assert kwargs["verify"] is False
        assert kwargs["timeout"] == 30
        assert kwargs["data"] == b"<body/>"
        assert kwargs["headers"] == {"Depth": "1"}

    def test_network_failure_becomes_transport_error(self) -> None:
        transport = WebDAVTransport()

        with patch(
            "webdav_media.webdav.requests.request",
            side_effect=requests.ConnectionError("refused"),
        ):
            with pytest.raises(TransportError) as excinfo:
                transport.request("GET", "http://nas/file.mkv")

        assert isinstance(excinfo.value.__cause__, requests.ConnectionError)

    def test_timeout_becomes_transport_error(self) -> None:
        transport = WebDAVTransport(timeout=5)

        with patch("webdav_media.webdav.requests.request", side_effect=requests.Timeout("slow")):
            with pytest.raises(TransportError):
                transport.request("PROPFIND", "http://nas/")

    @pytest.mark.parametrize("status,expected", [(207, True), (200, True), (204, True), (301, False), (404, False), (500, False)])
    def test_is_success(self, status: int, expected: bool) -> None:
        assert is_success(status) is expected


class TestClientUrls:
    def test_from_config_builds_base_url_and_auth(self, server_config: ServerConfig) -> None:
        client = WebDAVClient.from_config(server_config)

        assert client.base_url == "http://nas.local:5005"
        assert client.transport.auth == ("admin", "secret123")
        assert client.transport.timeout == 30

    def test_collection_url_has_single_trailing_slash(self, client: WebDAVClient) -> None:
        assert client.collection_url("/movies") == "http://nas.local:5005/movies/"
        assert client.collection_url("movies//") == "http://nas.local:5005/movies/"
        assert client.collection_url("/") == "http://nas.local:5005/"

    def test_join_url_quotes_path(self, client: WebDAVClient) -> None:
        assert client.join_url("/movies/A Movie (2020).mkv") == (
            "http://nas.local:5005/movies/A%20Movie%20%282020%29.mkv"
        )


class TestListDirectory:
    def test_sends_depth_one_propfind(self, client: WebDAVClient, transport) -> None:
        transport.add_dir("/movies", [("/movies/A.mkv", False, 1)])

        client.list_directory("/movies")

        method, url, headers, body = transport.calls[0]
        assert method == "PROPFIND"
        assert url == "http://nas.local:5005/movies/"
        assert headers["Depth"] == "1"
        assert body == PROPFIND_BODY
        for prop in ("resourcetype", "getcontentlength", "displayname"):
            assert prop in body

    def test_returns_children_without_self(self, client: WebDAVClient, transport) -> None:
        transport.add_dir("/movies", [("/movies/Sub", True, None), ("/movies/A.mkv", False, 42)])

        entries = client.list_directory("/movies")

        assert [(entry.path, entry.is_dir, entry.size) for entry in entries] == [
            ("/movies/Sub", True, None),
            ("/movies/A.mkv", False, 42),
        ]

    def test_error_status_returns_empty_and_warns(
        self, client: WebDAVClient, transport, caplog: pytest.LogCaptureFixture
    ) -> None:
        transport.add_status("/movies", 403)

        with caplog.at_level(logging.WARNING):
            assert client.list_directory("/movies") == []

        assert "/movies" in caplog.text

    def test_transport_error_returns_empty(self, client: WebDAVClient, transport, unreachable) -> None:
        transport.add_error("/movies", unreachable)

        assert client.list_directory("/movies") == []

    def test_invalid_xml_returns_empty(self, client: WebDAVClient, transport) -> None:
        transport.add_status("/movies", 207, "<broken")

        assert client.list_directory("/movies") == []

    def test_propfind_raises_protocol_error(self, client: WebDAVClient, transport) -> None:
        transport.add_status("/movies", 401)

        with pytest.raises(ProtocolError) as excinfo:
            client.propfind("/movies")

        assert excinfo.value.status == 401


class TestScanVideoFiles:
    @pytest.fixture
    def tree(self, transport):
        transport.add_dir(
            "/movies",
            [
                ("/movies/Top.mkv", False, 1),
                ("/movies/poster.jpg", False, 2),
                ("/movies/Sub", True, None),
            ],
        )
        transport.add_dir(
            "/movies/Sub",
            [("/movies/Sub/Deep.MP4", False, 3), ("/movies/Sub/Deeper", True, None)],
        )
        transport.add_dir("/movies/Sub/Deeper", [("/movies/Sub/Deeper/Last.ts", False, 4)])
        return transport

    def test_recursive_scan_collects_nested_videos(self, client: WebDAVClient, tree) -> None:
        files = client.scan_video_files("/movies", recursive=True)

        assert [file.path for file in files] == [
            "/movies/Top.mkv",
            "/movies/Sub/Deep.MP4",
            "/movies/Sub/Deeper/Last.ts",
        ]

    def test_non_recursive_scan_stays_in_directory(self, client: WebDAVClient, tree) -> None:
        files = client.scan_video_files("/movies", recursive=False)

        assert [file.path for file in files] == ["/movies/Top.mkv"]
        assert len(tree.calls) == 1

    def test_unreachable_subdirectory_does_not_abort_scan(self, client: WebDAVClient, tree, unreachable) -> None:
        tree.add_error("/movies/Sub", unreachable)

        files = client.scan_video_files("/movies", recursive=True)

        assert [file.path for file in files] == ["/movies/Top.mkv"]

    def test_custom_extension_list(self, server_config: ServerConfig, tree) -> None:
        client = WebDAVClient(
            base_url=server_config.base_url,
            transport=tree,
            video_filter=VideoFilter([".JPG"]),
        )

        files = client.scan_video_files("/movies", recursive=False)

        assert [file.name for file in files] == ["poster.jpg"]
