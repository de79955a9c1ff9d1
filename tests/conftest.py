"""Pytest configuration and fixtures."""

import pytest


@pytest.fixture(autouse=True)
def pipeline_environment(monkeypatch) -> None:
    """Keep the pipeline variables of the machine running the tests out of Settings."""
    for name in (
        "BUILD_REASON",
        "SYSTEM_ACCESSTOKEN",
        "SYSTEM_DEBUG",
        "SYSTEM_TEAMFOUNDATIONCOLLECTIONURI",
        "SYSTEM_PULLREQUEST_PULLREQUESTID",
        "INPUT_API_KEY",
        "INPUT_VERBOSE_LOGGING",
        "LOGFIRE_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)
