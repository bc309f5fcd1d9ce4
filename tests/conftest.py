from contextlib import contextmanager

import hypothesis
import pytest

from ballot.engine import BallotEngine
from ballot.exceptions import Reverted
from ballot.settings import Settings
from tests.utils import PROPOSALS, make_account, working_directory

############
# PATCHING #
############


# disable hypothesis deadline globally
hypothesis.settings.register_profile("ci", deadline=None)
hypothesis.settings.load_profile("ci")


def pytest_configure(config):
    config.addinivalue_line("markers", "fuzzing: property-based tests, slow to run")


@pytest.fixture(scope="session")
def accounts():
    return [make_account(i) for i in range(20)]


@pytest.fixture(scope="session")
def deployer(accounts):
    return accounts[0]


@pytest.fixture
def settings():
    return Settings(strict_checksum=False, require_registered_delegate=False)


@pytest.fixture
def make_ballot(deployer, settings):
    def fn(proposals=None, chairperson=None, **kwargs):
        if proposals is None:
            proposals = PROPOSALS
        if chairperson is None:
            chairperson = deployer
        return BallotEngine(proposals, chairperson, kwargs.pop("settings", settings))

    return fn


@pytest.fixture
def ballot(make_ballot):
    return make_ballot()


@pytest.fixture
def tx_failed():
    @contextmanager
    def fn(exception=Reverted, exc_text=None):
        with pytest.raises(exception) as excinfo:
            yield

        if exc_text is not None:
            assert exc_text == str(excinfo.value), (exc_text, excinfo.value)

    return fn


@pytest.fixture
def chdir_tmp_path(tmp_path):
    with working_directory(tmp_path):
        yield tmp_path


@pytest.fixture
def make_file(tmp_path):
    # writes file_contents to file_name, creating it in the
    # tmp_path directory. returns final path.
    def fn(file_name, file_contents):
        path = tmp_path / file_name
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w") as f:
            f.write(file_contents)

        return path

    return fn
