#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from os import mkdir
from os.path import exists
from os.path import join as path_join
import shutil
from wmiclone.paths import WMICLONE_PATH, CONFIG_PATH, LOGS_PATH, DATA_PATH
from wmiclone.logger import wmiclone_logger


def first_run_setup(logger=wmiclone_logger):
    if not exists(WMICLONE_PATH):
        logger.display("First time use detected")
        logger.display("Creating home directory structure")
        mkdir(WMICLONE_PATH)

    if not exists(LOGS_PATH):
        logger.display("Creating missing folder logs")
        mkdir(LOGS_PATH)

    if not exists(CONFIG_PATH):
        logger.display("Copying default configuration file")
        shutil.copy(path_join(DATA_PATH, "wmiclone.conf"), CONFIG_PATH)
