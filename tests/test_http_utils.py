import pytest
import requests
import requests_mock

from steering.utils.http_utils import OriginClient, OriginFetchError, get_origin_client

ORIGIN = "https://origin.example.com/bbb/"


class TestOriginClient:
    """Test OriginClient functionality"""

    def test_client_initialization(self):
        client = OriginClient(ORIGIN, timeout=20, max_retries=5)

        assert client.base_url == ORIGIN
        assert client.timeout == 20
        assert client.max_retries == 5
        assert client.session is not None

    def test_retry_adapter_mounted(self):
        client = OriginClient(ORIGIN, max_retries=4)
        adapter = client.session.get_adapter("https://origin.example.com/")
        assert adapter.max_retries.total == 4
        assert 503 in adapter.max_retries.status_forcelist

    @pytest.mark.parametrize("base_url,name,expected", [
        ("https://o/bbb/", "dash.mpd", "https://o/bbb/dash.mpd"),
        ("https://o/bbb", "dash.mpd", "https://o/bbb/dash.mpd"),
        ("https://o/bbb/", "/dash.mpd", "https://o/bbb/dash.mpd"),
    ])
    def test_resolve(self, base_url, name, expected):
        assert OriginClient(base_url).resolve(name) == expected

    def test_download_returns_body_bytes(self):
        client = OriginClient(ORIGIN)
        with requests_mock.Mocker() as m:
            m.get(ORIGIN + "dash.mpd", content=b"<MPD/>")
            assert client.fetch_mpd("dash.mpd") == b"<MPD/>"

    def test_download_non_200_raises(self):
        client = OriginClient(ORIGIN)
        with requests_mock.Mocker() as m:
            m.get(ORIGIN + "missing.mpd", status_code=404, text="not found")
            with pytest.raises(OriginFetchError) as excinfo:
                client.fetch_mpd("missing.mpd")
        assert excinfo.value.status_code == 502
        assert "HTTP 404" in excinfo.value.message

    def test_download_transport_error_raises(self):
        client = OriginClient(ORIGIN)
        with requests_mock.Mocker() as m:
            m.get(ORIGIN + "dash.mpd", exc=requests.exceptions.ConnectTimeout)
            with pytest.raises(OriginFetchError):
                client.fetch_mpd("dash.mpd")


def test_global_client_uses_remote_base_url(monkeypatch):
    monkeypatch.setattr("steering.utils.http_utils._origin_client", None)
    monkeypatch.setenv("REMOTE_BASE_URL", "https://env-origin.example.com/")
    client = get_origin_client()
    assert client.base_url == "https://env-origin.example.com/"
    assert get_origin_client() is client
