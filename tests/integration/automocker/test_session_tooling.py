"""Integration tests for the test-suite tooling: test base, fixture, well-known instances and FastAPI."""

import json
from abc import ABC, abstractmethod

import pytest
import requests

from automocker import FileSystem, Mocker, MockerOptions
from automocker.infrastructure.testing import MockerTestBase


class IReportSource(ABC):
    @abstractmethod
    def rows(self) -> list: ...


class DatabaseReportSource(IReportSource):
    def rows(self) -> list:
        return [{"id": 1}]


class ReportExporter:
    def __init__(self, source: IReportSource, files: FileSystem, http: requests.Session):
        if source is None:
            raise ValueError("source is required")
        self.source = source
        self.files = files
        self.http = http

    def export(self, name: str) -> int:
        body = json.dumps(self.source.rows())
        self.files.write_text(f"reports/{name}.json", body)
        response = self.http.post("/reports", data=body)
        return response.status_code


class Archiver:
    def __init__(self, files: FileSystem):
        self.files = files

    def archive(self, path: str) -> bool:
        return self.files.exists(path)


class TestReportExporter(MockerTestBase[ReportExporter]):
    """Test a component through MockerTestBase with well-known dependencies."""

    def setup_mocks(self, mocks):
        mocks.get_substitute(IReportSource).setup("rows").returns([{"id": 7}])
        mocks.http_adapter.respond_with(201)

    def test_export_writes_file_and_posts(self):
        """Test that the exporter uses the in-memory file system and fake HTTP client."""
        status = self.component.export("daily")

        assert status == 201
        assert self.mocks.file_system.read_text("reports/daily.json") == '[{"id": 7}]'
        request = self.mocks.http_adapter.requests[0]
        assert (request.method, request.url) == ("POST", "http://localhost/reports")
        assert request.body == '[{"id": 7}]'

    def test_well_known_instances_are_injected(self):
        """Test that the component receives the session's shared instances."""
        assert self.component.files is self.mocks.file_system
        assert self.component.http is self.mocks.http_client

    def test_source_is_required(self):
        """Test that only the source parameter rejects None."""
        failures = {}

        def record(create, constructor_name, parameter_name):
            try:
                create()
            except ValueError as error:
                failures[parameter_name] = str(error)

        self.check_constructor_parameters(record)

        assert failures == {"source": "source is required"}


class TestArchiverStrict(MockerTestBase[Archiver]):
    """Test a strict session where well-known types are substituted."""

    mocker_options = MockerOptions(strict=True)

    def test_file_system_is_substituted(self):
        """Test that strict sessions inject a substitute for FileSystem."""
        substitute = self.mocks.get_substitute(FileSystem)
        substitute.setup("exists").with_args("old.log").returns(True)

        assert self.component.files is substitute.object
        assert self.component.archive("old.log") is True


class TestAutomockerFixtureFlow:
    """Test the automocker fixture driving a whole test."""

    def test_fixture_builds_component(self, automocker):
        """Test building and configuring a component through the fixture."""
        automocker.get_substitute(IReportSource).setup("rows").returns([])

        exporter = automocker.resolve(ReportExporter)

        assert exporter.export("empty") == 200
        assert automocker.file_system.list("reports/") == ["reports/empty.json"]

    @pytest.mark.automocker(http_status_code=503, http_content="unavailable")
    def test_marker_configures_http(self, automocker):
        """Test that marker options configure the fake HTTP response."""
        exporter = automocker.resolve(ReportExporter)

        assert exporter.export("late") == 503

    @pytest.mark.automocker(strict=True)
    def test_marker_makes_session_strict(self, automocker):
        """Test that a strict marker substitutes the well-known types."""
        archiver = automocker.resolve(Archiver)

        assert archiver.files is automocker.get_object(FileSystem)
        assert archiver.files is not automocker.file_system


class TestFastAPIFlow:
    """Test FastAPI endpoints served with mocker-backed dependencies."""

    def test_endpoint_uses_substitute(self):
        """Test that an endpoint receives the configured substitute."""
        pytest.importorskip("fastapi")
        from fastapi import Depends, FastAPI
        from fastapi.testclient import TestClient

        from automocker.infrastructure.fastapi_integration import MockerOverrides

        def get_source() -> IReportSource:
            return DatabaseReportSource()

        app = FastAPI()

        @app.get("/rows")
        def list_rows(source: IReportSource = Depends(get_source)):
            return source.rows()

        mocker = Mocker()
        mocker.get_substitute(IReportSource).setup("rows").returns([{"id": 42}])

        with MockerOverrides(app, mocker, get_source):
            response = TestClient(app).get("/rows")

        assert response.json() == [{"id": 42}]
        assert get_source not in app.dependency_overrides
        mocker.get_substitute(IReportSource).mock.rows.assert_called_once_with()
