"""Tests for the multi-app host service and definition loading."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from formweave import App
from formweave.core.errors import LoadError
from formweave.runtime.config import WeaveConfig
from formweave.runtime.host import AppHost, create_host_app
from formweave.runtime.loader import load_app
from formweave.runtime.sessions import cookie_name
from formweave.runtime.state import StateStore

COUNTER_SOURCE = '''
from formweave import App

app = App("Counter")


@app.view
def counter(ui):
    ui.text_field("count", default="0")

    def bump(state):
        state["count"] = str(int(state["count"]) + 1)

    ui.button("Bump", on_click=bump)
'''


@pytest.fixture
def host(config: WeaveConfig) -> AppHost:
    return AppHost(config)


@pytest.fixture
def client(host: AppHost) -> Iterator[TestClient]:
    with TestClient(create_host_app(host)) as client:
        yield client


def hosted_store(client: TestClient, host: AppHost, app_id: str) -> StateStore:
    hosted = host.get(app_id)
    assert hosted is not None
    session, created = hosted.engine.sessions.resolve(client.cookies.get(cookie_name(app_id)))
    assert not created
    store: StateStore = session.store
    return store


class TestLoader:
    def test_loads_app_attribute(self, survey_file: Path) -> None:
        app = load_app(survey_file)
        assert isinstance(app, App)
        assert app.title == "Survey"

    def test_single_unnamed_app(self, make_definition: Callable[[str, str], Path]) -> None:
        path = make_definition("named", "from formweave import App\nform = App('Only')\n")
        assert load_app(path).title == "Only"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(LoadError, match="not found"):
            load_app(tmp_path / "nope.py")

    def test_no_app(self, make_definition: Callable[[str, str], Path]) -> None:
        with pytest.raises(LoadError, match="does not create an App"):
            load_app(make_definition("empty", "x = 1\n"))

    def test_several_apps(self, make_definition: Callable[[str, str], Path]) -> None:
        source = "from formweave import App\none = App('One')\ntwo = App('Two')\n"
        with pytest.raises(LoadError, match="several"):
            load_app(make_definition("many", source))

    def test_import_failure_is_chained(self, make_definition: Callable[[str, str], Path]) -> None:
        with pytest.raises(LoadError) as excinfo:
            load_app(make_definition("broken", "raise RuntimeError('nope')\n"))
        assert isinstance(excinfo.value.__cause__, RuntimeError)


class TestHostApi:
    def test_health_and_empty_index(self, client: TestClient) -> None:
        assert client.get("/health").json() == {"status": "healthy", "apps": 0}
        assert client.get("/api/apps").json() == {"apps": []}
        assert client.get("/").status_code == 200

    def test_load_and_serve(self, client: TestClient, survey_file: Path) -> None:
        loaded = client.post("/load-app", json={"file_path": str(survey_file)}).json()
        assert loaded["name"] == "Survey"
        assert loaded["url"] == f"/apps/{loaded['id']}/"

        page = client.get(loaded["url"])
        assert page.status_code == 200
        assert f'hx-post="/apps/{loaded["id"]}/update"' in page.text
        assert "Survey" in client.get("/").text

    def test_load_with_name(self, client: TestClient, survey_file: Path) -> None:
        loaded = client.post(
            "/load-app", json={"file_path": str(survey_file), "name": "Renamed"}
        ).json()
        assert loaded["name"] == "Renamed"

    def test_load_error(self, client: TestClient, tmp_path: Path) -> None:
        response = client.post("/load-app", json={"file_path": str(tmp_path / "none.py")})
        assert response.status_code == 400
        assert "not found" in response.json()["error"]

    def test_remove(self, client: TestClient, host: AppHost, survey_file: Path) -> None:
        app_id = client.post("/load-app", json={"file_path": str(survey_file)}).json()["id"]
        assert client.delete(f"/api/apps/{app_id}").json() == {"removed": app_id}
        assert app_id not in host
        assert client.get(f"/apps/{app_id}/").status_code == 404
        assert client.delete(f"/api/apps/{app_id}").status_code == 404

    def test_unknown_app(self, client: TestClient) -> None:
        assert client.get("/apps/deadbeef/").status_code == 404
        assert client.post("/apps/deadbeef/update", data={"a": "1"}).status_code == 404


class TestHostIsolation:
    def test_apps_have_separate_state(
        self,
        client: TestClient,
        host: AppHost,
        survey_file: Path,
        make_definition: Callable[[str, str], Path],
    ) -> None:
        counter_file = make_definition("counter", COUNTER_SOURCE)
        survey = client.post("/load-app", json={"file_path": str(survey_file)}).json()["id"]
        counter = client.post("/load-app", json={"file_path": str(counter_file)}).json()["id"]

        client.get(f"/apps/{survey}/")
        client.get(f"/apps/{counter}/")
        client.post(f"/apps/{survey}/update", data={"a": "hello"})
        response = client.post(f"/apps/{counter}/action/bump_1", data={"count": "4"})
        assert response.status_code == 200

        assert hosted_store(client, host, survey)["a"] == "hello"
        assert hosted_store(client, host, counter)["count"] == "5"
        assert "a" not in hosted_store(client, host, counter)

    def test_failure_in_one_app_leaves_others(
        self,
        client: TestClient,
        host: AppHost,
        survey_file: Path,
        make_definition: Callable[[str, str], Path],
    ) -> None:
        broken_file = make_definition(
            "broken_view",
            "from formweave import App\n"
            "def view(ui):\n    raise RuntimeError('always')\n"
            "app = App('Broken', view)\n",
        )
        broken = client.post("/load-app", json={"file_path": str(broken_file)}).json()["id"]
        survey = client.post("/load-app", json={"file_path": str(survey_file)}).json()["id"]

        assert client.get(f"/apps/{broken}/").status_code == 500
        assert client.get(f"/apps/{survey}/").status_code == 200
        assert client.get("/health").json()["apps"] == 2

    def test_visiting_another_app_keeps_state(
        self, client: TestClient, survey_file: Path, make_definition: Callable[[str, str], Path]
    ) -> None:
        counter_file = make_definition("counter", COUNTER_SOURCE)
        survey = client.post("/load-app", json={"file_path": str(survey_file)}).json()["id"]
        counter = client.post("/load-app", json={"file_path": str(counter_file)}).json()["id"]

        client.get(f"/apps/{survey}/")
        client.post(f"/apps/{survey}/update", data={"a": "kept"})
        client.get(f"/apps/{counter}/")
        assert 'value="kept"' in client.get(f"/apps/{survey}/").text

    def test_registries_use_configured_key_and_cookie(self) -> None:
        host = AppHost(WeaveConfig(secret_key="prod-secret"))
        hosted = host.add(App("Inline", lambda ui: ui.text("hi")))
        assert hosted.engine.sessions.secret_key == "prod-secret"
        assert hosted.engine.sessions.cookie_name == cookie_name(hosted.id)

    def test_session_cookies_are_per_app(self, client: TestClient, survey_file: Path) -> None:
        app_id = client.post("/load-app", json={"file_path": str(survey_file)}).json()["id"]
        response = client.get(f"/apps/{app_id}/")
        assert cookie_name(app_id) in response.headers["set-cookie"]


class TestLifecycle:
    def test_serves_given_host(self, host: AppHost) -> None:
        assert create_host_app(host).state.host is host

    def test_shutdown_drains(self, host: AppHost, survey_file: Path) -> None:
        with TestClient(create_host_app(host)) as client:
            client.post("/load-app", json={"file_path": str(survey_file)})
            assert len(host) == 1
        assert len(host) == 0

    def test_add_in_process(self, host: AppHost) -> None:
        hosted = host.add(App("Inline", lambda ui: ui.text("hi")))
        assert host.get(hosted.id) is hosted
        assert hosted.describe()["sessions"] == 0
        assert [entry.id for entry in host.apps()] == [hosted.id]
