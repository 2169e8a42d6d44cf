# coding=utf-8
import configparser
from os.path import join as path_join
from wmiclone.paths import CONFIG_PATH, DATA_PATH
from wmiclone.first_run import first_run_setup
from wmiclone.logger import wmiclone_logger

BACKENDS = ("auto", "scripting", "dcom")

wmiclone_default_config = configparser.ConfigParser()
wmiclone_default_config.read(path_join(DATA_PATH, "wmiclone.conf"))


def load_config(config_path=CONFIG_PATH, logger=wmiclone_logger):
    """Read the user config, adding any option an older copy is missing from the packaged default."""
    config = configparser.ConfigParser()
    config.read(config_path)

    # Check if there are any missing options in the config file
    for section in wmiclone_default_config.sections():
        for option in wmiclone_default_config.options(section):
            if not config.has_option(section, option):
                logger.display(f"Adding missing option '{option}' in config section '{section}' to wmiclone.conf")
                if not config.has_section(section):
                    config.add_section(section)
                config.set(section, option, wmiclone_default_config.get(section, option))

                with open(config_path, "w") as config_file:
                    config.write(config_file)
    return config


wmiclone_config = configparser.ConfigParser()
wmiclone_config.read(CONFIG_PATH)

if "WMICLONE" not in wmiclone_config.sections():
    first_run_setup()

wmiclone_config = load_config()

#!!! THESE OPTIONS HAVE TO EXIST IN THE DEFAULT CONFIG FILE !!!
default_backend = wmiclone_config.get("WMICLONE", "backend", fallback="auto")
rpc_timeout = wmiclone_config.getint("WMICLONE", "rpc_timeout", fallback=2)
config_log = wmiclone_config.getboolean("WMICLONE", "log_mode", fallback=False)
audit_mode = wmiclone_config.get("WMICLONE", "audit_mode", fallback="")
reveal_chars_of_pwd = wmiclone_config.getint("WMICLONE", "reveal_chars_of_pwd", fallback=0)

if default_backend not in BACKENDS:
    wmiclone_logger.error(f"Config option backend must be one of {', '.join(BACKENDS)}! Using 'auto'.")
    default_backend = "auto"


def process_secret(text):
    if not audit_mode or not text:
        return text
    hidden = text[:reveal_chars_of_pwd]
    return hidden + audit_mode * 8
