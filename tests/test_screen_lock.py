from types import SimpleNamespace

import psutil

from agent import screen_lock


def _processes(*names):
    return [SimpleNamespace(info={"name": name}) for name in names]


def test_non_windows_is_never_locked(monkeypatch):
    monkeypatch.setattr(screen_lock.psutil, "process_iter", lambda attrs: _processes("LogonUI.exe"))
    assert screen_lock.is_interactive_session_locked(platform="linux") is False


def test_windows_locked_when_logon_ui_running(monkeypatch):
    monkeypatch.setattr(
        screen_lock.psutil, "process_iter", lambda attrs: _processes("explorer.exe", "LogonUI.exe")
    )
    assert screen_lock.is_interactive_session_locked(platform="win32") is True


def test_windows_unlocked_without_logon_ui(monkeypatch):
    monkeypatch.setattr(screen_lock.psutil, "process_iter", lambda attrs: _processes("explorer.exe", None))
    assert screen_lock.is_interactive_session_locked(platform="win32") is False


def test_process_scan_errors_count_as_unlocked(monkeypatch):
    def broken(attrs):
        raise psutil.AccessDenied()

    monkeypatch.setattr(screen_lock.psutil, "process_iter", broken)
    assert screen_lock.is_interactive_session_locked(platform="win32") is False
