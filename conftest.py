import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run tests marked as integration (calls the live Vista proxy).",
    )


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "integration: tests that call the live Vista RETS proxy over the network"
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-integration"):
        return

    skip_integration = pytest.mark.skip(
        reason="needs network access to the Vista proxy (use --run-integration)"
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)
