"""
The editable theme of a blog.
"""
import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


class Theme:
    """
    A directory of templates and static files a blog owner may edit.

    The live copy is restored from the backup (or from the packaged default
    theme when no backup exists) when the blog starts, and backed up again
    when it stops.
    """

    def __init__(self, name, path, backup_path, default_path=None):
        self.name = name
        self.path = Path(path)
        self.backup_path = Path(backup_path)
        self.default_path = Path(default_path) if default_path else None

    def __repr__(self):
        return f"<Theme {self.name} at {self.path}>"

    def restore(self):
        if self.backup_path.is_dir():
            source = self.backup_path
        elif self.default_path is not None and self.default_path.is_dir():
            source = self.default_path
        else:
            self.path.mkdir(parents=True, exist_ok=True)
            return

        logger.info("Restoring theme %s from %s", self.name, source)
        shutil.copytree(source, self.path, dirs_exist_ok=True)

    def backup(self):
        if not self.path.is_dir():
            return

        logger.info("Backing up theme %s to %s", self.name, self.backup_path)
        if self.backup_path.exists():
            shutil.rmtree(self.backup_path)
        shutil.copytree(self.path, self.backup_path)
