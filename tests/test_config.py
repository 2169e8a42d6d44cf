#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import configparser
from unittest.mock import MagicMock

import pytest

from wmiclone import config
from wmiclone.first_run import first_run_setup


@pytest.fixture(scope="function")
def old_config(tmp_path):
    config_path = tmp_path / "wmiclone.conf"
    config_path.write_text("[WMICLONE]\nrpc_timeout = 5\nlog_mode = True\n")
    yield config_path


def test_process_secret_without_audit_mode(monkeypatch):
    monkeypatch.setattr(config, "audit_mode", "")
    assert config.process_secret("Winter2024!") == "Winter2024!"


def test_process_secret_masks_in_audit_mode(monkeypatch):
    monkeypatch.setattr(config, "audit_mode", "*")
    monkeypatch.setattr(config, "reveal_chars_of_pwd", 2)
    assert config.process_secret("Winter2024!") == "Wi********"
    monkeypatch.setattr(config, "reveal_chars_of_pwd", 0)
    assert config.process_secret("31d6cfe0d16ae931b73c59d7e0c089c0") == "********"
    assert config.process_secret("") == ""


def test_load_config_backfills_missing_options(old_config):
    logger = MagicMock()
    loaded = config.load_config(str(old_config), logger)

    assert loaded.get("WMICLONE", "backend") == "auto"
    assert loaded.get("WMICLONE", "reveal_chars_of_pwd") == "0"
    # options already present are left alone
    assert loaded.getint("WMICLONE", "rpc_timeout") == 5
    assert loaded.getboolean("WMICLONE", "log_mode") is True
    assert any("'backend'" in call.args[0] for call in logger.display.call_args_list)

    written = configparser.ConfigParser()
    written.read(old_config)
    assert written.get("WMICLONE", "backend") == "auto"
    assert written.getint("WMICLONE", "rpc_timeout") == 5


def test_load_config_leaves_complete_config_untouched(wmiclone_home):
    first_run_setup(MagicMock())
    config_path = wmiclone_home / "wmiclone.conf"
    before = config_path.read_text()

    logger = MagicMock()
    loaded = config.load_config(str(config_path), logger)
    assert loaded.sections() == ["WMICLONE"]
    logger.display.assert_not_called()
    assert config_path.read_text() == before


def test_first_run_creates_home(wmiclone_home):
    logger = MagicMock()
    first_run_setup(logger)
    assert (wmiclone_home / "logs").is_dir()
    assert (wmiclone_home / "wmiclone.conf").is_file()
    logger.display.assert_any_call("First time use detected")

    logger.reset_mock()
    first_run_setup(logger)
    logger.display.assert_not_called()
