import pytest

from actionflow.flash import MemoryFlashStore
from actionflow.settings import Settings, reset_settings


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        api_version="v1",
        log_errors=False,
        flash_messages={
            "flash.actions.success": "Done",
            "flash.errors.validation": "Please fix the errors",
            "flash.widgets.create.success": "Widget created",
        },
    )


@pytest.fixture
def flash_store() -> MemoryFlashStore:
    return MemoryFlashStore()

