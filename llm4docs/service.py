"""
Run an editing session over a text file from the terminal.

    python -m llm4docs.service notes.txt

Each line typed is sent as an instruction. Lines starting with a slash are
session commands:

    /select START END   select characters START..END (END optional: caret)
    /apply              apply the last response at the selection
    /new                start a new conversation
    /quit               leave

"""

import logging
import sys
from typing import TextIO

from llm4docs.config import ModelConfig
from llm4docs.document_remote.FileDocumentRemote import FileDocumentRemote
from llm4docs.logger import logger
from llm4docs.model_gateway.OllamaModelGateway import OllamaModelGateway
from llm4docs.models import OutcomeType, RevisionOutcome
from llm4docs.session.RevisionSession import RevisionSession


def _print_outcome(outcome: RevisionOutcome, out: TextIO):
    if outcome.type == OutcomeType.failed:
        print(f"[error] {outcome.message}", file=out)
    elif outcome.type == OutcomeType.rejected:
        print(f"[rejected] {outcome.message}", file=out)
    else:
        print(outcome.text, file=out)


def _run_command(
    session: RevisionSession, document: FileDocumentRemote, line: str, out: TextIO
) -> bool:
    """
    Handle one slash command. Returns False when the session should end.

    """
    command, *args = line.split()
    if command == "/quit":
        return False
    if command == "/new":
        session.reset()
        print("[new chat]", file=out)
    elif command == "/apply":
        outcome = session.apply_last_response()
        _print_outcome(outcome, out)
        if outcome.type == OutcomeType.applied:
            document.save()
    elif command == "/select":
        try:
            offsets = [int(arg) for arg in args]
            document.select(*offsets)
        except (TypeError, ValueError, IndexError) as e:
            print(f"[rejected] {e}", file=out)
        else:
            print(f"[selected] {document.get_selection().text!r}", file=out)
    else:
        print(f"[rejected] Unknown command {command}", file=out)
    return True


def run(path: str, lines: TextIO, out: TextIO, gateway=None):
    document = FileDocumentRemote(path)
    session = RevisionSession(document, gateway or OllamaModelGateway(ModelConfig()))
    session.subscribe_status(lambda status, label: logger.info(label))

    for line in lines:
        line = line.strip()
        if not line:
            continue
        if line.startswith("/"):
            if not _run_command(session, document, line, out):
                break
            continue
        outcome = session.submit(line)
        _print_outcome(outcome, out)
        if outcome.type == OutcomeType.applied:
            document.save()


def main(argv: list[str] | None = None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print(__doc__, file=sys.stderr)
        sys.exit(2)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    run(argv[-1], sys.stdin, sys.stdout)


if __name__ == "__main__":
    main()
