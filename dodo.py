# -*- coding: utf-8 -*-
# pydoit task file
# see https://pydoit.org/
# run from this dir with `doit`, or `doit list`, `doit help` etc. (pip install doit 1st)

from doit.action import CmdAction

SPEED_FILTERS = {
    "": None,
    "all": None,
    "slow": '-m "slow"',
    "fast": '-m "not slow"',
    "not slow": '-m "not slow"',
}


def _build_pytest_command(
    test_dir,
    keyword="",
    speed="",
    retry=False,
    print_logs=False,
    full_trace=False,
    show_time=False,
):
    """Helper function to build pytest commands for test tasks."""
    if speed not in SPEED_FILTERS:
        raise ValueError(
            f"Invalid speed filter: {speed}. Use 'slow', 'not slow', 'fast', or 'all'"
        )
    cmd = ["pytest"]
    if print_logs:
        cmd.append("--capture=no")
    if full_trace:
        cmd.append("--full-trace")
    if show_time:
        cmd.append("--durations=0")
    cmd.extend(["--color=yes", "-vv", "-x"])
    if retry:
        cmd.append("--lf")
    if keyword:
        cmd.extend(["-k", f'"{keyword}"'])
    if SPEED_FILTERS[speed]:
        cmd.append(SPEED_FILTERS[speed])
    cmd.append(test_dir)
    return " ".join(cmd)


def _test_task(test_dir, task_name, example_keyword):
    help_text = f"""echo '
{task_name} runner
{"=" * (len(task_name) + 7)}

Filter Options:
  -k, --keyword TEXT    Only run tests matching the keyword expression
                        Example: -k "{example_keyword} and not slow"
  -s, --speed TEXT      Filter tests by speed:
                        - "slow": Run only slow tests
                        - "not slow" or "fast": Skip slow tests
                        - "all": Run all tests regardless of speed
  -r, --retry           Only run previously failed tests

Output Options:
  -p, --print-logs      Print test logs to console instead of capturing
  -f, --full-trace      Show full traceback on errors
  -t, --show-time       Display duration of all tests

Examples:
  doit {task_name}                     # Run all tests
  doit {task_name} -k {example_keyword}     # Run tests containing "{example_keyword}"
  doit {task_name} -s fast -p          # Run fast tests with logs
  doit {task_name} --retry --show-time # Rerun failed tests with timing
  '"""

    def router(keyword, speed, retry, print_logs, full_trace, show_time, help=False):
        if help:
            return help_text
        try:
            return _build_pytest_command(
                test_dir,
                keyword=keyword,
                speed=speed,
                retry=retry,
                print_logs=print_logs,
                full_trace=full_trace,
                show_time=show_time,
            )
        except ValueError as e:
            return f"echo 'Error: {str(e)}' && exit 1"

    flags = [
        ("retry", "r"),
        ("print_logs", "p"),
        ("full_trace", "f"),
        ("show_time", "t"),
    ]
    return {
        "actions": [CmdAction(router)],
        "params": [
            {"name": "help", "long": "help", "default": False, "type": bool},
            {"name": "keyword", "short": "k", "default": ""},
            {"name": "speed", "short": "s", "default": ""},
        ]
        + [
            {"name": name, "short": short, "default": False, "type": bool}
            for name, short in flags
        ],
        "verbosity": 2,
    }


def task_make_env():
    """Create a conda environment"""
    return {
        "actions": ["conda create --prefix ./conda_env python=3.11"],
        "targets": ["./conda_env"],
        "uptodate": [True],  # Only run if target doesn't exist
        "verbosity": 2,
    }


def task_install():
    """Install fsmhost in editable mode, with test extras"""
    return {
        "actions": ["pip install -e .[test]"],
        "task_dep": ["make_env"],
        "verbosity": 2,
    }


def task_test_logic():
    """Run the logic test suite (tests in test/logic/, emulator only)."""
    return _test_task("test/logic/", "test_logic", "flexio")


def task_test_hardware():
    """Run the hardware test suite (tests in test/hardware/, needs a device)."""
    return _test_task("test/hardware/", "test_hardware", "relay")


def task_format():
    """Format code using ruff (imports sorted, then formatted)."""
    return {
        "actions": [
            f"ruff check --select I --fix {target} && ruff format {target}"
            for target in ("src/fsmhost", "test/", "dodo.py")
        ],
        "verbosity": 2,
    }
