"""
Shared fixtures for cartfile-tools tests.
"""

import pytest

from cartfile_tools.cli_config import reset_config


SAMPLE_CARTFILE = """\
# Reactive programming
github "ReactiveX/RxSwift" ~> 6.5
github "Alamofire/Alamofire" >= 5.0.0-beta.1 # networking
git "https://example.com/Lib.git" "develop"

binary "https://example.com/Framework.json" == 2.3.0
github "Quick/Nimble"
"""

SAMPLE_RESOLVED = """\
binary "https://example.com/Framework.json" "2.3.0"
git "https://example.com/Lib.git" "8f2c7a1e4b"
github "Alamofire/Alamofire" "5.6.4"
github "Quick/Nimble" "v12.0.0"
github "ReactiveX/RxSwift" "6.5.0"
"""

SAMPLE_SCHEMES = """\
# Schemes to build
RxSwift
Nimble-iOS
"""


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep user and project config files out of the tests."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    for variable in (
        "CARTFILE_TOOLS_LOG_LEVEL",
        "CARTFILE_TOOLS_MAX_FILE_SIZE_MB",
        "CARTFILE_TOOLS_QUIET",
        "CARTFILE_TOOLS_COLOR",
    ):
        monkeypatch.delenv(variable, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def temp_dir(tmp_path):
    """Directory for manifest files created by a test."""
    directory = tmp_path / "project"
    directory.mkdir()
    return directory


@pytest.fixture
def sample_cartfile(temp_dir):
    path = temp_dir / "Cartfile"
    path.write_text(SAMPLE_CARTFILE)
    return path


@pytest.fixture
def sample_resolved_cartfile(temp_dir):
    path = temp_dir / "Cartfile.resolved"
    path.write_text(SAMPLE_RESOLVED)
    return path


@pytest.fixture
def sample_schemes(temp_dir):
    path = temp_dir / "Cartfile.schemes"
    path.write_text(SAMPLE_SCHEMES)
    return path


@pytest.fixture
def sample_project(sample_cartfile, sample_resolved_cartfile, sample_schemes, temp_dir):
    """A project directory with all three manifests."""
    return temp_dir
