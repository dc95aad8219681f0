"""Console double for tests: reads from a script, records everything written."""


class ScriptedConsole:
    """Console fed from a list of lines; collects everything written.

    Running out of lines fails the test, so an unexpected prompt never hangs.
    """

    def __init__(self, lines: list[str] | None = None):
        self.lines = list(lines or [])
        self.output: list[str] = []

    def read_line(self) -> str:
        if not self.lines:
            raise AssertionError("No more scripted input")
        line = self.lines.pop(0)
        self.output.append(line + "\n")
        return line

    def read_secret(self) -> str:
        if not self.lines:
            raise AssertionError("No more scripted input")
        # secrets are not echoed
        self.output.append("\n")
        return self.lines.pop(0)

    def write(self, text: str) -> None:
        self.output.append(text)

    @property
    def text(self) -> str:
        return "".join(self.output)
