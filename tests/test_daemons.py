import sys

import pytest

from legionjeux.legion.daemons import (
    LOG_VERSIONS,
    DaemonStatus,
    LegionError,
    Supervisor,
)

GOOD = (
    "import os, time\n"
    "print('hello', flush=True)\n"
    "os.write(3, b's')\n"
    "os.close(3)\n"
    "while True:\n"
    "    time.sleep(0.05)\n"
)

SILENT = "import time\ntime.sleep(30)\n"

STUBBORN = (
    "import os, signal, time\n"
    "signal.signal(signal.SIGTERM, signal.SIG_IGN)\n"
    "os.write(3, b's')\n"
    "os.close(3)\n"
    "while True:\n"
    "    time.sleep(0.05)\n"
)


def _make_daemon(directory, name, body):
    script = directory / f"{name}.py"
    script.write_text(body)
    launcher = directory / name
    launcher.write_text(f'#!/bin/sh\nexec "{sys.executable}" "{script}"\n')
    launcher.chmod(0o755)


@pytest.fixture
def dirs(tmp_path):
    daemons = tmp_path / "daemons"
    daemons.mkdir()
    _make_daemon(daemons, "politeprog", GOOD)
    _make_daemon(daemons, "silentprog", SILENT)
    _make_daemon(daemons, "stubbornprog", STUBBORN)
    return tmp_path / "logs", daemons


@pytest.fixture
def sup(dirs):
    log_dir, daemons = dirs
    supervisor = Supervisor(log_dir, daemons, 3.0)
    yield supervisor
    supervisor.shutdown()


def test_register_and_status(sup):
    sup.register("alpha", "politeprog", "")
    daemon = sup.status("alpha")
    assert daemon.status is DaemonStatus.INACTIVE
    assert daemon.pid == 0
    assert daemon.status_line() == "alpha\t0\tinactive"


def test_register_duplicate_raises(sup):
    sup.register("alpha", "politeprog", "")
    with pytest.raises(LegionError):
        sup.register("alpha", "politeprog", "")


def test_status_all_newest_first(sup):
    for name in ("a", "b", "c"):
        sup.register(name, "politeprog", "")
    assert [d.name for d in sup.status_all()] == ["c", "b", "a"]


def test_status_unknown_raises(sup):
    with pytest.raises(LegionError):
        sup.status("ghost")


def test_unregister(sup):
    sup.register("alpha", "politeprog", "")
    sup.unregister("alpha")
    with pytest.raises(LegionError):
        sup.status("alpha")
    with pytest.raises(LegionError):
        sup.unregister("alpha")


@pytest.mark.parametrize(
    "status, text",
    [
        (DaemonStatus.UNKNOWN, "unknown"),
        (DaemonStatus.INACTIVE, "inactive"),
        (DaemonStatus.STARTING, "starting"),
        (DaemonStatus.ACTIVE, "active"),
        (DaemonStatus.STOPPING, "stopping"),
        (DaemonStatus.EXITED, "exited"),
        (DaemonStatus.CRASHED, "crashed"),
    ],
)
def test_status_strings(sup, status, text):
    sup.register("alpha", "politeprog", "")
    daemon = sup.status("alpha")
    daemon.status = status
    assert daemon.status_line() == f"alpha\t0\t{text}"
    daemon.status = DaemonStatus.INACTIVE


def test_log_path_format(sup):
    assert sup.log_path("name", 3).name == "name.log.3"


def test_start_and_stop(sup):
    sup.register("alpha", "politeprog", "")
    daemon = sup.start("alpha", 0)
    assert daemon.status is DaemonStatus.ACTIVE
    assert daemon.pid > 0
    assert "hello" in sup.log_path("alpha", 0).read_text()
    with pytest.raises(LegionError):
        sup.start("alpha", 0)
    with pytest.raises(LegionError):
        sup.unregister("alpha")
    assert sup.stop("alpha").status is DaemonStatus.EXITED
    assert sup.stop("alpha").status is DaemonStatus.INACTIVE
    with pytest.raises(LegionError):
        sup.stop("alpha")


def test_start_unknown_raises(sup):
    with pytest.raises(LegionError):
        sup.start("ghost", 0)


def test_start_missing_executable(sup):
    sup.register("alpha", "no-such-program-here", "")
    with pytest.raises(LegionError):
        sup.start("alpha", 0)
    assert sup.status("alpha").status is DaemonStatus.INACTIVE


def test_start_without_sync_crashes(dirs):
    log_dir, daemons = dirs
    supervisor = Supervisor(log_dir, daemons, 0.5)
    supervisor.register("quiet", "silentprog", "")
    with pytest.raises(LegionError):
        supervisor.start("quiet", 0)
    assert supervisor.status("quiet").status is DaemonStatus.CRASHED
    assert supervisor.stop("quiet").status is DaemonStatus.INACTIVE


def test_stop_ignored_sigterm_kills(dirs):
    log_dir, daemons = dirs
    supervisor = Supervisor(log_dir, daemons, 1.0)
    supervisor.register("mule", "stubbornprog", "")
    supervisor.start("mule", 0)
    with pytest.raises(LegionError):
        supervisor.stop("mule")
    assert supervisor.status("mule").status is DaemonStatus.CRASHED
    assert supervisor.stop("mule").status is DaemonStatus.INACTIVE


def test_logrotate_requires_active(sup):
    sup.register("alpha", "politeprog", "")
    with pytest.raises(LegionError):
        sup.logrotate("alpha")
    with pytest.raises(LegionError):
        sup.logrotate("ghost")


def test_logrotate_moves_to_next_version(sup):
    sup.register("alpha", "politeprog", "")
    first_pid = sup.start("alpha", 0).pid
    daemon = sup.logrotate("alpha")
    assert daemon.status is DaemonStatus.ACTIVE
    assert daemon.pid != first_pid
    assert "hello" in sup.log_path("alpha", 1).read_text()


def test_logrotate_full_shifts_versions(sup):
    sup.log_dir.mkdir(parents=True)
    for version in range(LOG_VERSIONS):
        sup.log_path("alpha", version).write_text(f"v{version}\n")
    sup.register("alpha", "politeprog", "")
    sup.start("alpha", 0)
    sup.logrotate("alpha")
    assert sup.log_path("alpha", LOG_VERSIONS - 1).read_text() == f"v{LOG_VERSIONS - 2}\n"
    assert sup.log_path("alpha", 1).read_text().startswith("v0\n")
    assert "hello" in sup.log_path("alpha", 0).read_text()
    assert sup.status("alpha").status is DaemonStatus.ACTIVE


def test_shutdown_stops_and_clears(sup):
    sup.register("alpha", "politeprog", "")
    sup.register("beta", "politeprog", "")
    process = sup.start("alpha", 0).process
    sup.shutdown()
    assert sup.status_all() == []
    assert process.poll() is not None