import pytest

from sourcebrief.backends.mock import build_mock_brief
from sourcebrief.config import Settings
from sourcebrief.models.brief import Brief

URLS = ["https://a.example/1", "https://b.example/2"]


@pytest.fixture
def urls():
    return list(URLS)


@pytest.fixture
def brief_dict(urls):
    return build_mock_brief(urls)


@pytest.fixture
def make_brief():
    def _make(urls=URLS, **overrides):
        data = build_mock_brief(list(urls))
        data.update(overrides)
        return Brief.model_validate(data)

    return _make


@pytest.fixture
def make_settings(tmp_path):
    def _make(**overrides):
        values = {
            "groq_api_key": "",
            "store_backend": "memory",
            "store_path": str(tmp_path / "briefs.json"),
            "database_path": str(tmp_path / "briefs.db"),
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make
