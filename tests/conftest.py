from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from tests._fixtures.repo_builder import RepoBuilder

SAMPLE_SOURCES = {
    "Sources/App/AppDelegate.swift": """
        import Networking

        /// Boots the application.
        final class AppDelegate {
            let client = APIClient()

            func start() {
                // TODO: restore session
                client.send()
            }
        }
    """,
    "Sources/Networking/APIClient.swift": """
        import Foundation

        public final class APIClient {
            public func send() {
                let request = URLRequest(url: endpoint)
                perform(request)
            }
        }
    """,
}


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable repo builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture
def sample_repo(repo_builder: RepoBuilder) -> Path:
    """Two-module Swift repository where App depends on Networking."""
    repo_builder.write(SAMPLE_SOURCES)
    return repo_builder.path()


@pytest.fixture
def codecontext_logs(
    caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
) -> Iterator[pytest.LogCaptureFixture]:
    """Capture every codecontext record, whatever an earlier configure_logging left behind."""
    logger = logging.getLogger("codecontext")
    monkeypatch.setattr(logger, "propagate", False)
    caplog.set_level(logging.DEBUG, logger="codecontext")
    logger.addHandler(caplog.handler)
    yield caplog
    logger.removeHandler(caplog.handler)
