"""Session control for the seqcalc language: owns the environment of one running program, feeds source text to the
parser and the evaluator, and turns their failure values into GenericExceptions for ErrorHandler.

Only one evaluation may run against a session's environment at a time. `execute` cancels whatever evaluation is still in
flight before starting the next one (cancel-before-replace).
"""

import asyncio
import logging

from seqcalc.lang.error import GenericException
from seqcalc.lang.evaluator import evaluate_program
from seqcalc.lang.lexical import parse_program, parse_statement

logger = logging.getLogger("seqcalc.session")


def _escape(msg):
    """Escapes braces so msg can be used as a GenericException template (rendered sequences contain braces)."""
    return msg.replace("{", "{{").replace("}", "}}")


class Session:
    """Governs a seqcalc session, with control over the environment (name -> normal form)."""
    SH_FILE = "<in>"  # command-line interpreter filename

    def __init__(self, error_handler, path, cmd_line):
        self.error_handler = error_handler
        self.error_handler.register_file(path)

        self.path = path          # used for error messages
        self.cmd_line = cmd_line  # whether or not in command-line mode (one statement per line)

        self.environment = {}  # bindings made by var statements, shared by every run of this session
        self.results = []      # outputs of successful runs, oldest first
        self._task = None      # evaluation currently in flight, if any

        if self.cmd_line:
            self.error_handler.fatal = False
        elif path == Session.SH_FILE:
            raise GenericException("'<in>' is a reserved filename")

    @staticmethod
    def preprocess_line(line):
        """Strips trailing whitespace from a line of command-line input. Returns the line and whether it must be joined
        with the next one (an opening parenthesis or brace is still unmatched).
        """
        line = line.rstrip()
        return line, line.count("(") > line.count(")") or line.count("{") > line.count("}")

    def read(self):
        """Returns the contents of self.path."""
        try:
            with open(self.path, "r") as file:
                return file.read()
        except OSError:
            raise GenericException("'{}' could not be opened", self.path, diagnosis=False)

    def parse(self, text, line_num=1):
        """Parses text into statements: the whole program in file mode, exactly one statement in command-line mode.
        Raises a GenericException pointing at the unparsed remainder if text is not valid seqcalc.
        """
        if self.cmd_line:
            parsed = parse_statement(text).map(lambda statement: [statement])
        else:
            parsed = parse_program(text)

        if parsed.is_success():
            logger.debug("parsed %d statement(s) from %s", len(parsed.value), self.path)
            return parsed.value

        fragment, offset = parsed.reason.fragment, parsed.reason.offset
        line_start = text.rfind("\n", 0, offset) + 1
        line_end = text.find("\n", offset)
        if line_end == -1:
            line_end = len(text)

        line = text[line_start:line_end]
        self.error_handler.register_line(self.path, line, line_num + text.count("\n", 0, line_start))

        start = offset - line_start
        if not fragment:
            raise GenericException("'{}' ends unexpectedly", line, start=start)
        raise GenericException("unable to parse '{1}'", (line, fragment), start=start, end=line_end - line_start)

    async def cancel(self):
        """Cancels the evaluation in flight, if any, and waits until it has stopped. Returns whether one was running."""
        task = self._task
        if task is None or task.done():
            return False

        task.cancel()
        await asyncio.wait({task})
        if self._task is task:
            self._task = None

        logger.debug("cancelled unfinished evaluation in %s", self.path)
        self.error_handler.warn("cancelled unfinished evaluation", diagnosis=False)
        return True

    async def execute(self, text, line_num=1):
        """Parses and runs text against self.environment and returns its output. Any evaluation still in flight is
        cancelled first. Raises a GenericException if text does not parse or its evaluation fails.
        """
        statements = self.parse(text, line_num)

        while self._task is not None and not self._task.done():  # another execute may have started one meanwhile
            await self.cancel()
        task = self._task = asyncio.ensure_future(evaluate_program(statements, self.environment))

        if self.cmd_line:
            self.error_handler.register_line(self.path, text, line_num)  # in case evaluation fails
        result = await task

        if self._task is task:
            self._task = None

        if not result.is_success():
            raise GenericException(_escape(result.reason), diagnosis=False)

        self.error_handler.remove_line(self.path)  # evaluation did not fail
        self.results.append(result.value)
        return result.value

    def run(self, text, line_num=1):
        """Blocking version of execute, for callers outside an event loop."""
        return asyncio.run(self.execute(text, line_num))

    def pop(self):
        """Removes and returns the oldest unread result."""
        return self.results.pop(0)
