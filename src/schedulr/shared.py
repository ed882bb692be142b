import inspect
import textwrap
import shutil
import re
import os
from datetime import date, datetime
from pathlib import Path

from .errors import DateFormatError

DATE_FMT = "%Y%m%d"
TODAY = "today"

_DATE_RE = re.compile(r"\d{8}", re.ASCII)


def parse_date(date_str: str) -> date:
    """
    Parse an 8-digit 'YYYYMMDD' string into a date.

    Raises DateFormatError for anything else, including well-formed digits
    that do not name a calendar day ('20240230').
    """
    s = date_str if isinstance(date_str, str) else ""
    if not _DATE_RE.fullmatch(s):
        raise DateFormatError(context={"date": date_str})
    try:
        return datetime.strptime(s, DATE_FMT).date()
    except ValueError as e:
        raise DateFormatError(context={"date": date_str}) from e


def fmt_date(d: date) -> str:
    # strftime does not zero-pad years before 1000 on every platform
    return f"{d.year:04d}{d.month:02d}{d.day:02d}"


def _get_runtime_home() -> Path:
    override = os.environ.get("SCHEDULR_HOME")
    if override:
        return Path(override).expanduser()
    from .schedulr_env import SchedulrEnvironment

    return SchedulrEnvironment().home


def _resolve_log_file_path(file_path: str | Path) -> Path:
    path = Path(file_path)
    if path.is_absolute():
        return path
    return _get_runtime_home() / path


def _default_log_relative_path(kind: str) -> Path:
    """Return logs/log_<YYMMDD>.md style paths under the runtime home."""
    suffix = datetime.now().strftime("%y%m%d")
    return Path("logs") / f"{kind}_{suffix}.md"


def log_msg(
    msg: str,
    file_path: str | Path | None = None,
    print_output: bool = False,
):
    """
    Log a message and save it directly to a file.

    Args:
        msg (str): The message to log.
        file_path (str | Path | None, optional): Overrides the default path when
            provided. Defaults to ``None`` which writes to ``logs/log_<YYMMDD>.md``.
        print_output (bool, optional): If True, also print to console.
    """
    frame = inspect.stack()[1].frame
    func_name = frame.f_code.co_name

    caller_name = func_name

    if "self" in frame.f_locals:  # instance method
        cls_name = frame.f_locals["self"].__class__.__name__
        caller_name = f"{cls_name}.{func_name}"
    elif "cls" in frame.f_locals:  # classmethod
        cls_name = frame.f_locals["cls"].__name__
        caller_name = f"{cls_name}.{func_name}"
    del frame

    lines = [
        f"- {datetime.now().strftime('%H:%M:%S')} log_msg ({caller_name}):  ",
    ]
    lines.extend(
        [
            f"\n{x}"
            for x in textwrap.wrap(
                msg.strip(),
                width=max(shutil.get_terminal_size()[0] - 6, 40),
                initial_indent="   ",
                subsequent_indent="   ",
            )
        ]
    )
    lines.append("\n\n")

    # Best-effort file logging; fall back to console when the file is unwritable.
    if file_path is None:
        file_path = _default_log_relative_path("log")
    try:
        log_path = _resolve_log_file_path(file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(log_path, "a", encoding="utf-8") as f:
            f.writelines(lines)
    except OSError:
        print_output = True

    if print_output:
        print("".join(lines))
