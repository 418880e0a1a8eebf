"""
Shared fixtures for go-mod-what tests.
"""

import pytest

from go_mod_what.cli_config import reset_config

SAMPLE_GO_MOD = """module example.com/app

go 1.21

require (
\tgithub.com/gorilla/mux v1.8.0
\tgithub.com/gorilla/schema v1.2.0
\tgolang.org/x/mod v0.14.0 // indirect
)

require github.com/stretchr/testify v1.8.4

replace github.com/gorilla/schema => github.com/gorilla/schema v1.2.1

exclude golang.org/x/net v0.1.0
"""

INVALID_GO_MOD = """module example.com/app

require invalid content
"""


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep config discovery away from the developer's real files."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for key in (
        "GO_MOD_WHAT_MODFILE",
        "GO_MOD_WHAT_SEPARATOR",
        "GO_MOD_WHAT_FORMAT",
        "GO_MOD_WHAT_FAIL_ON_MISSING",
        "GO_MOD_WHAT_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def temp_dir(tmp_path):
    """Directory for manifests created by a test."""
    work = tmp_path / "work"
    work.mkdir()
    return work


@pytest.fixture
def sample_go_mod(temp_dir):
    """A go.mod with block and single-line requires plus other directives."""
    path = temp_dir / "go.mod"
    path.write_text(SAMPLE_GO_MOD)
    return path


@pytest.fixture
def invalid_go_mod(temp_dir):
    """A go.mod whose third line is not a valid require entry."""
    path = temp_dir / "invalid_go.mod"
    path.write_text(INVALID_GO_MOD)
    return path
