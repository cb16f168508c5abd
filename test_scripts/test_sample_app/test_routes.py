import json
import socket

import pytest

from sample_app.server import GREETING, lookup_host, split_host


def test_when_rootPath_then_returnGreeting(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.get_data(as_text=True) == GREETING


@pytest.mark.parametrize("path", ["/foo", "/index.html", "/_ah", "/versions", "/custom/extra"])
def test_when_unknownPath_then_return404(client, path):
    response = client.get(path)

    assert response.status_code == 404


@pytest.mark.parametrize("method", ["GET", "POST", "PUT", "DELETE", "PATCH", "TRACE", "PROPFIND"])
def test_when_healthCheck_then_alwaysOK(client, method):
    response = client.open("/_ah/health", method=method)

    assert response.status_code == 200
    assert response.get_data(as_text=True) == "OK"


def test_when_version_then_reportPythonRuntime(client):
    response = client.get("/version")

    body = response.get_data(as_text=True)
    assert response.status_code == 200
    assert response.mimetype == "text/plain"
    assert body.startswith("Python version=")
    assert "machine=" in body
    assert "system=" in body


def test_when_tzinfo_then_returnFixedZone(client):
    response = client.get("/tzinfo")

    assert response.status_code == 200
    assert response.get_data(as_text=True) == "US/Pacific\n"


def test_when_tzinfoMissing_then_return500(client, mocker):
    mocker.patch("sample_app.server.TIMEZONE_NAME", "Nowhere/Nothing")

    response = client.get("/tzinfo")

    assert response.status_code == 500
    assert response.get_data(as_text=True)


def test_when_lookupHost_then_returnAddressesNewlineJoined(client, mocker):
    getaddrinfo = mocker.patch(
        "sample_app.server.socket.getaddrinfo",
        return_value=[
            (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("10.0.0.1", 0)),
            (socket.AF_INET, socket.SOCK_DGRAM, 17, "", ("10.0.0.1", 0)),
            (socket.AF_INET6, socket.SOCK_STREAM, 6, "", ("::1", 0, 0, 0)),
        ],
    )

    response = client.get("/lookup_host", headers={"Host": "example.test:8080"})

    assert response.status_code == 200
    assert response.get_data(as_text=True) == "10.0.0.1\n::1"
    getaddrinfo.assert_called_once_with("example.test", None)


def test_when_lookupHostFails_then_return500(client, mocker):
    mocker.patch(
        "sample_app.server.socket.getaddrinfo",
        side_effect=socket.gaierror(-2, "Name or service not known"),
    )

    response = client.get("/lookup_host")

    assert response.status_code == 500
    assert response.get_data(as_text=True).startswith("error lookup host:")


@pytest.mark.parametrize(
    "host, expected",
    [
        ("example.test", "example.test"),
        ("example.test:8080", "example.test"),
        ("[::1]:8080", "::1"),
        ("[::1]", "::1"),
        ("::1", "::1"),
    ],
)
def test_splitHost(host, expected):
    assert split_host(host) == expected


def test_when_lookupLocalhost_then_includeLoopback():
    assert any(addr in ("127.0.0.1", "::1") for addr in lookup_host("localhost"))


def test_when_custom_then_listThreeEndpoints(client):
    response = client.get("/custom")

    tests = json.loads(response.get_data(as_text=True))
    assert response.status_code == 200
    assert response.mimetype == "application/json"
    assert len(tests) == 3
    assert all(t["name"] and t["path"] for t in tests)
    assert {t["path"] for t in tests} == {"/version", "/lookup_host", "/tzinfo"}


@pytest.mark.parametrize("path", ["/version", "/tzinfo", "/custom"])
def test_when_unlistedMethodOnAnyMethodPath_then_served(client, path):
    response = client.open(path, method="PROPFIND")

    assert response.status_code == 200


def test_when_rootPathNotGet_then_return405(client):
    response = client.post("/")

    assert response.status_code == 405
