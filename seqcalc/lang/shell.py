"""Handles interactive/command-line mode for the seqcalc interpreter. Uses cmd as backend."""

import cmd
import logging

logger = logging.getLogger("seqcalc.shell")


class Shell(cmd.Cmd):
    """seqcalc interpreter shell."""
    intro = "seqcalc interpreter :: Python backend\nType '?' or 'help' for more information."
    prompt = "> "
    secondary_prompt = ". "  # used for line continuations
    _tmp_prompt = "> "       # also used for prompt swapping in line continuations

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess

        self._tmp_line = ""
        self.line_num = 0

    def default(self, line):
        """Executes an arbitrary seqcalc statement."""
        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            self.line_num += 1
            line, add_to_prev = self.sess.preprocess_line(self._tmp_line + line)

            if add_to_prev:
                self._tmp_line = line + " "
                self.prompt = self.secondary_prompt
                return

            self._tmp_line = ""
            self.prompt = self._tmp_prompt

            if not line:
                return

            logger.debug("line %d: %s", self.line_num, line)
            self.sess.run(line, self.line_num)

            output = self.sess.pop()
            if output:
                print(output)

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        print("Welcome to the seqcalc interpreter!\n\n"
              "seqcalc evaluates arithmetic over numbers and sequences of numbers. Statements \n"
              "are 'var NAME = EXPR' (bind), 'out EXPR' (show a value) and 'print \"TEXT\"'. \n"
              "Note that '^' binds tightest, then '/', '*', '-' and finally '+'.\n\n"
              "Try it out by typing 'var xs = map({1 .. 5}, x -> x * x)'. This will bind the \n"
              "squares of 1 to 5 to the name 'xs'. Next, try typing \n"
              "'out reduce(xs, 0, a b -> a + b)'. This will give '55' as the result.")

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""

    def do_EOF(self, arg):
        """Exits interpreter."""
        print()
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True
