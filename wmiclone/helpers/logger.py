#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from termcolor import colored


def highlight(text, color="yellow"):
    if color == "yellow":
        return f"{colored(text, 'yellow', attrs=['bold'])}"
    elif color == "red":
        return f"{colored(text, 'red', attrs=['bold'])}"
    return str(text)
