"""Tests for downloading result files from artifact listings."""

from unittest.mock import MagicMock

import pytest
import requests

from wet_results.artifact_client import ArtifactClient

BASE = "http://ci.example.com/job/acceptance/12/artifact/"

ROOT_INDEX = """<html><body>
<a href="?C=N;O=D">Name</a>
<a href="../">../</a>
<a href="results/">results/</a>
<a href="wetresult.xml">wetresult.xml</a>
<a href="report.html">report.html</a>
<a href="http://elsewhere.example.com/">Home</a>
</body></html>"""

RESULTS_INDEX = """<html><body>
<a href="../">Parent Directory</a>
<a href="firefox.xml">firefox.xml</a>
</body></html>"""


def _response(text="", content=b""):
    response = MagicMock()
    response.text = text
    response.iter_content.return_value = [content]
    return response


@pytest.fixture
def client(tmp_path):
    client = ArtifactClient(cache_dir=tmp_path)
    pages = {
        BASE: _response(text=ROOT_INDEX),
        BASE + "results/": _response(text=RESULTS_INDEX),
    }

    def fake_get(url, timeout=None, stream=False):
        if url in pages:
            return pages[url]
        return _response(content=f"<wet><!-- {url} --></wet>".encode())

    client.session = MagicMock()
    client.session.get.side_effect = fake_get
    return client


def test_list_artifacts(client):
    items = client.list_artifacts(BASE)
    assert items == [
        {"name": "results", "type": "dir", "url": BASE + "results/"},
        {"name": "wetresult.xml", "type": "file", "url": BASE + "wetresult.xml"},
        {"name": "report.html", "type": "file", "url": BASE + "report.html"},
    ]


def test_list_artifacts_adds_trailing_slash(client):
    assert len(client.list_artifacts(BASE.rstrip('/'))) == 3


def test_list_artifacts_request_failure(client):
    client.session.get.side_effect = requests.ConnectionError("unreachable")
    assert client.list_artifacts(BASE) == []


def test_download_file_is_cached(client, tmp_path):
    path = client.download_file(BASE + "wetresult.xml")

    assert path == tmp_path / "ci.example.com" / "job" / "acceptance" / "12" / "artifact" / "wetresult.xml"
    assert path.read_bytes().startswith(b"<wet>")

    client.session.get.reset_mock()
    assert client.download_file(BASE + "wetresult.xml") == path
    client.session.get.assert_not_called()

    client.download_file(BASE + "wetresult.xml", force=True)
    client.session.get.assert_called_once()


def test_download_file_failure(client, tmp_path):
    client.session.get.side_effect = requests.HTTPError("404")
    assert client.download_file(BASE + "missing.xml") is None
    assert not list(tmp_path.rglob("*.tmp"))


def test_download_results_walks_directories(client):
    paths = client.download_results(BASE)
    assert [p.name for p in paths] == ["firefox.xml", "wetresult.xml"]


def test_download_results_with_patterns(client):
    paths = client.download_results(BASE, patterns=["wet*.xml"])
    assert [p.name for p in paths] == ["wetresult.xml"]


def test_download_single_file_url(client):
    paths = client.download_results(BASE + "results/firefox.xml")
    assert [p.name for p in paths] == ["firefox.xml"]


def test_clear_cache(client, tmp_path):
    client.download_file(BASE + "wetresult.xml")
    client.clear_cache(BASE)
    assert not (tmp_path / "ci.example.com" / "job" / "acceptance" / "12" / "artifact").exists()
    assert tmp_path.exists()
