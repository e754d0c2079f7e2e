"""Pytest configuration for all tests."""

import pytest

from src.provisioning.config import FunctionSettings, load_settings


SETTINGS_ENV = {
    "APPWRITE_ENDPOINT": "https://appwrite.test/v1",
    "APPWRITE_PROJECT_ID": "project-1",
    "APPWRITE_API_KEY": "standard_secret_key",
    "APPWRITE_DATABASE_ID": "db-main",
    "APPWRITE_WORKSPACES_COLLECTION_ID": "workspaces",
}


@pytest.fixture
def settings_env():
    return dict(SETTINGS_ENV)


@pytest.fixture
def settings(settings_env) -> FunctionSettings:
    return load_settings(settings_env)


@pytest.fixture
def webhook_settings(settings_env) -> FunctionSettings:
    env = dict(settings_env)
    env["WEBHOOK_URL"] = "https://hooks.test/workspaces"
    env["WEBHOOK_API_KEY"] = "hook-key"
    return load_settings(env)
