import pytest

from sample_app.clients import ClientBundle
from sample_app.server import create_app


@pytest.fixture(autouse=True)
def env_setup(monkeypatch):
    monkeypatch.setenv("PROJECT_ID", "test-project")
    monkeypatch.setenv("LOG_LEVEL", "CRITICAL")


@pytest.fixture
def clients(mocker):
    return ClientBundle(
        project_id="test-project",
        logging_client=mocker.MagicMock(name="logging_client"),
        metric_client=mocker.MagicMock(name="metric_client"),
        error_client=mocker.MagicMock(name="error_client"),
    )


@pytest.fixture
def client(clients):
    app = create_app(clients)
    app.config["TESTING"] = True
    return app.test_client()
