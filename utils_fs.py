# utils_fs.py
# Directories, CSV logs and logging setup

import os
import logging
from logging.handlers import RotatingFileHandler

LOG_FILE_NAME = "faceaccess.log"
LOG_MAX_SIZE = 5 * 1024 * 1024  # 5 MB
LOG_BACKUP_COUNT = 3
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def ensure_dirs(*paths):
    for p in paths:
        if p:
            os.makedirs(p, exist_ok=True)


def reset_csv(path):
    """Create `path` empty, truncating whatever a previous run left there."""
    folder = os.path.dirname(path)
    if folder:
        os.makedirs(folder, exist_ok=True)
    with open(path, "w", encoding="utf-8"):
        pass


def log_csv(path, row_values):
    with open(path, "a", encoding="utf-8") as f:
        f.write(",".join(map(str, row_values)) + "\n")


def setup_logging(logs_dir, debug=False):
    """
    Configure the root logger: size-rotated file in logs_dir + console.
    Safe to call twice; handlers are only attached once.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    if getattr(root, "_faceaccess_configured", False):
        return root

    formatter = logging.Formatter(LOG_FORMAT)

    if logs_dir:
        os.makedirs(logs_dir, exist_ok=True)
        fh = RotatingFileHandler(
            os.path.join(logs_dir, LOG_FILE_NAME),
            maxBytes=LOG_MAX_SIZE,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        fh.setFormatter(formatter)
        root.addHandler(fh)

    sh = logging.StreamHandler()
    sh.setFormatter(formatter)
    root.addHandler(sh)

    root._faceaccess_configured = True
    return root
