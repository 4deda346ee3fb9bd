import inspect
import re

from maltose.internal import intlog

LINE_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{3} \[INTE\] test_intlog\.py:(\d+) (.*)$"
)


def _first_line(out):
    return out.splitlines()[0]


def test_print_line_layout(capsys):
    intlog.print_("hello world")
    out = capsys.readouterr().out
    match = LINE_RE.match(_first_line(out))
    assert match is not None
    assert match.group(2) == "hello world"
    assert out.endswith("\n")


def test_print_reports_caller_line(capsys):
    line = inspect.currentframe().f_lineno + 1
    intlog.print_("where")
    match = LINE_RE.match(_first_line(capsys.readouterr().out))
    assert int(match.group(1)) == line


def test_print_spacing_between_non_strings(capsys):
    intlog.print_("a", 1, 2)
    match = LINE_RE.match(_first_line(capsys.readouterr().out))
    assert match.group(2) == "a1 2"


def test_printf_formats(capsys):
    intlog.printf("value=%d name=%s", 5, "x")
    match = LINE_RE.match(_first_line(capsys.readouterr().out))
    assert match.group(2) == "value=5 name=x"


def test_printf_without_args_keeps_percent(capsys):
    intlog.printf("100%")
    match = LINE_RE.match(_first_line(capsys.readouterr().out))
    assert match.group(2) == "100%"


def test_error_includes_caller_stack(capsys):
    intlog.error("boom")
    lines = capsys.readouterr().out.splitlines()
    assert LINE_RE.match(lines[0]).group(2) == "boom"
    assert lines[1] == "Caller Stack:"
    assert lines[2].startswith("    test_intlog.py:")
    assert all("intlog.py:" not in l or "test_intlog.py:" in l for l in lines[2:])


def test_errorf_includes_caller_stack(capsys):
    intlog.errorf("failed: %s", "disk")
    lines = capsys.readouterr().out.splitlines()
    assert LINE_RE.match(lines[0]).group(2) == "failed: disk"
    assert "Caller Stack:" in lines


def test_disabled_prints_nothing(capsys, monkeypatch):
    monkeypatch.setattr(intlog, "DEBUG", False)
    intlog.print_("x")
    intlog.printf("%s", "x")
    intlog.error("x")
    intlog.errorf("%s", "x")
    assert capsys.readouterr().out == ""