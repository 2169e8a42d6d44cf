#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import logging
from logging import LogRecord
from logging.handlers import RotatingFileHandler
import os.path
import sys
import re
from wmiclone.console import wmiclone_console
from wmiclone.paths import LOGS_PATH
from termcolor import colored
from datetime import datetime
from rich.text import Text
from rich.logging import RichHandler


class WMICloneAdapter(logging.LoggerAdapter):
    def __init__(self, extra=None):
        logging.basicConfig(
            format="%(message)s",
            datefmt="[%X]",
            handlers=[
                RichHandler(
                    console=wmiclone_console,
                    rich_tracebacks=True,
                    tracebacks_show_locals=False,
                )
            ],
        )
        super().__init__(logging.getLogger("wmiclone"), extra)
        self.output_file = None

    def format(self, msg, *args, **kwargs):
        """
        Format msg for output if needed
        This is used instead of process() since process() applies to _all_ messages, including debug calls
        """
        if not self.extra:
            return f"{msg}", kwargs

        backend = colored(self.extra.get("backend", "WMI"), "blue", attrs=["bold"])
        namespace = self.extra.get("namespace") or "NONE"
        return (
            f"{backend:<24} {self.extra.get('host', ''):<15} {namespace:<24} {msg}",
            kwargs,
        )

    def display(self, msg, *args, **kwargs):
        """
        Display text to console, formatted for wmiclone
        """
        msg, kwargs = self.format(f"{colored('[*]', 'blue', attrs=['bold'])} {msg}", kwargs)
        text = Text.from_ansi(msg)
        wmiclone_console.print(text, *args, **kwargs)
        self.log_console_to_file(text, *args, **kwargs)

    def success(self, msg, color="green", *args, **kwargs):
        """
        Print some sort of success to the user
        """
        msg, kwargs = self.format(f"{colored('[+]', color, attrs=['bold'])} {msg}", kwargs)
        text = Text.from_ansi(msg)
        wmiclone_console.print(text, *args, **kwargs)
        self.log_console_to_file(text, *args, **kwargs)

    def highlight(self, msg, *args, **kwargs):
        """
        Prints a completely yellow highlighted message to the user
        """
        msg, kwargs = self.format(f"{colored(msg, 'yellow', attrs=['bold'])}", kwargs)
        text = Text.from_ansi(msg)
        wmiclone_console.print(text, *args, **kwargs)
        self.log_console_to_file(text, *args, **kwargs)

    def fail(self, msg, color="red", *args, **kwargs):
        """
        Prints a failure (may or may not be an error) - e.g. the namespace guard refused a target
        """
        msg, kwargs = self.format(f"{colored('[-]', color, attrs=['bold'])} {msg}", kwargs)
        text = Text.from_ansi(msg)
        wmiclone_console.print(text, *args, **kwargs)
        self.log_console_to_file(text, *args, **kwargs)

    def log_console_to_file(self, text, *args, **kwargs):
        """
        If debug or info logging is not enabled, we still want display/success/fail logged to the file specified,
        so we create a custom LogRecord and pass it to all the additional handlers (which will be all the file handlers)
        """
        if self.logger.getEffectiveLevel() >= logging.INFO:
            # will be 0 if it's just the console output, so only do this if we actually have file loggers
            if len(self.logger.handlers):
                for handler in self.logger.handlers:
                    handler.handle(
                        LogRecord(
                            "wmiclone",
                            20,
                            "",
                            0,
                            msg=text,
                            args=args,
                            exc_info=None,
                        )
                    )
        else:
            self.logger.info(text)

    def add_file_log(self, log_file=None):
        file_formatter = TermEscapeCodeFormatter("%(asctime)s - %(levelname)s - %(message)s")
        output_file = self.init_log_file() if log_file is None else log_file
        file_creation = not os.path.isfile(output_file)

        file_handler = RotatingFileHandler(output_file, maxBytes=100000)

        with file_handler._open() as f:
            if file_creation:
                f.write("[%s]> %s\n\n" % (datetime.now().strftime("%d-%m-%Y %H:%M:%S"), " ".join(sys.argv)))
            else:
                f.write("\n[%s]> %s\n\n" % (datetime.now().strftime("%d-%m-%Y %H:%M:%S"), " ".join(sys.argv)))

        file_handler.setFormatter(file_formatter)
        self.logger.addHandler(file_handler)
        self.logger.debug(f"Added file handler: {file_handler}")
        return file_handler

    @staticmethod
    def init_log_file():
        newpath = os.path.join(LOGS_PATH, datetime.now().strftime("%Y-%m-%d"))
        if not os.path.exists(newpath):
            os.makedirs(newpath)
        return os.path.join(newpath, f"log_{datetime.now().strftime('%Y-%m-%d-%H-%M-%S')}.log")


class TermEscapeCodeFormatter(logging.Formatter):
    """A class to strip the escape codes for logging to files"""

    def __init__(self, fmt=None, datefmt=None, style="%", validate=True):
        super().__init__(fmt, datefmt, style, validate)

    def format(self, record):
        escape_re = re.compile(r"\x1b\[[0-9;]*m")
        record.msg = re.sub(escape_re, "", str(record.msg))
        return super().format(record)


# initialize the logger for all of wmiclone - this is imported everywhere
wmiclone_logger = WMICloneAdapter()
