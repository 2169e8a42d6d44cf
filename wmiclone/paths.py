import os
import wmiclone

WMICLONE_PATH = os.path.expanduser(os.environ.get("WMICLONE_HOME", "~/.wmiclone"))
LOGS_PATH = os.path.join(WMICLONE_PATH, "logs")
CONFIG_PATH = os.path.join(WMICLONE_PATH, "wmiclone.conf")
DATA_PATH = os.path.join(os.path.dirname(wmiclone.__file__), "data")
