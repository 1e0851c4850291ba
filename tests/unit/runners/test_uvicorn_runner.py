"""Unit tests for the Uvicorn runner."""

from pytest_mock import MockerFixture

from models.config import ServiceConfiguration
from runners.uvicorn import start_uvicorn


def test_start_uvicorn(mocker: MockerFixture) -> None:
    """Test that Uvicorn builds the app by the factory in each worker."""
    run = mocker.patch("uvicorn.run")
    configuration = ServiceConfiguration(
        host="0.0.0.0", port=9090, workers=2, color_log=False, access_log=False
    )

    start_uvicorn(configuration)

    run.assert_called_once_with(
        "app.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=9090,
        workers=2,
        log_level=20,
        use_colors=False,
        access_log=False,
    )
