#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from rich.console import Console

wmiclone_console = Console(soft_wrap=True, tab_size=4)
