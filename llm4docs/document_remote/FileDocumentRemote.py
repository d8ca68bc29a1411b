"""
A document backed by a plain text file on disk.

The file is read once into memory; edits are made in memory and written back
with `save()`. Line endings are detected on load so that inserted text uses
the same convention as the rest of the file.

"""

import pathlib

from llm4docs.document_remote.InMemoryDocumentRemote import InMemoryDocumentRemote
from llm4docs.logger import logger


def _detect_line_break(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


class FileDocumentRemote(InMemoryDocumentRemote):
    def __init__(self, path: pathlib.Path | str, encoding: str = "utf-8"):
        """
        Arguments:
            path: The text file to edit. It is created empty if missing.
            encoding: Encoding used for reading and writing.

        """
        self._path = pathlib.Path(path)
        self._encoding = encoding
        super().__init__("")
        self.refresh()

    @property
    def path(self) -> pathlib.Path:
        return self._path

    def refresh(self):
        """
        Reload the file from disk. Existing ranges stop resolving.

        """
        if self._path.exists():
            with open(self._path, encoding=self._encoding, newline="") as f:
                text = f.read()
        else:
            logger.info(f"{self._path} does not exist yet, starting empty.")
            text = ""
        self.line_break = _detect_line_break(text)
        self.set_text(text)

    def save(self):
        with open(self._path, "w", encoding=self._encoding, newline="") as f:
            f.write(self.get_full_text())
        logger.info(
            f"Saved {self._path} at revision {self.current_revision_id}."
        )
