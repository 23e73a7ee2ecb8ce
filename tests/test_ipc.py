import json
import os
import shutil
import socket
import tempfile
import threading
import uuid
from contextlib import contextmanager
from pathlib import Path

import pytest

from wbless.hyprland.ipc import HyprlandIPC, get_socket_folder


@pytest.fixture
def hypr_folder(monkeypatch):
    base = tempfile.mkdtemp(prefix="wb", dir="/tmp")
    signature = uuid.uuid4().hex[:8]
    folder = Path(base) / "hypr" / signature
    folder.mkdir(parents=True)
    monkeypatch.setenv("XDG_RUNTIME_DIR", base)
    monkeypatch.setenv("HYPRLAND_INSTANCE_SIGNATURE", signature)
    yield folder
    shutil.rmtree(base, ignore_errors=True)


@contextmanager
def serve(path, reply, read_request=True):
    server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    server.bind(str(path))
    server.listen(1)
    received = []

    def run():
        conn, _ = server.accept()
        with conn:
            if read_request:
                received.append(conn.recv(4096))
            conn.sendall(reply)

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    try:
        yield received
    finally:
        thread.join(5)
        server.close()


def test_parse_ipc_dispatches_by_name():
    ipc = HyprlandIPC()
    seen = []
    other = []
    ipc.register_for_ipc("workspacev2", seen.append)
    ipc.register_for_ipc("closewindow", other.append)
    ipc.parse_ipc("workspacev2>>3,3")
    assert seen == ["workspacev2>>3,3"]
    assert other == []


def test_unregister_removes_all_registrations():
    ipc = HyprlandIPC()
    seen = []
    kept = []
    ipc.register_for_ipc("urgent", seen.append)
    ipc.register_for_ipc("openwindow", seen.append)
    ipc.register_for_ipc("urgent", kept.append)
    ipc.unregister_for_ipc(seen.append)
    ipc.parse_ipc("urgent>>abc")
    ipc.parse_ipc("openwindow>>abc,1,x,y")
    assert seen == []
    assert kept == ["urgent>>abc"]


def test_register_none_is_ignored():
    ipc = HyprlandIPC()
    seen = []
    ipc.register_for_ipc("urgent", None)
    ipc.register_for_ipc("urgent", seen.append)
    ipc.parse_ipc("urgent>>x")
    assert seen == ["urgent>>x"]


def test_socket_folder_uses_runtime_dir(hypr_folder):
    signature = os.environ["HYPRLAND_INSTANCE_SIGNATURE"]
    assert get_socket_folder(signature) == hypr_folder


def test_socket_folder_falls_back_to_tmp(monkeypatch):
    monkeypatch.delenv("XDG_RUNTIME_DIR", raising=False)
    signature = uuid.uuid4().hex
    assert get_socket_folder(signature) == Path("/tmp/hypr") / signature


def test_socket_folder_is_cached(monkeypatch, tmp_path):
    monkeypatch.delenv("XDG_RUNTIME_DIR", raising=False)
    signature = uuid.uuid4().hex
    first = get_socket_folder(signature)
    (tmp_path / "hypr").mkdir()
    monkeypatch.setenv("XDG_RUNTIME_DIR", str(tmp_path))
    assert get_socket_folder(signature) == first


def test_socket1_reply(hypr_folder):
    ipc = HyprlandIPC()
    with serve(hypr_folder / ".socket.sock", b"ok") as received:
        reply = ipc.get_socket1_reply("dispatch workspace 2")
    assert reply == "ok"
    assert received == [b"dispatch workspace 2"]


def test_socket1_json_reply(hypr_folder):
    ipc = HyprlandIPC()
    payload = [{"id": 1, "name": "DP-1"}]
    with serve(hypr_folder / ".socket.sock", json.dumps(payload).encode()) as received:
        reply = ipc.get_socket1_json_reply("monitors")
    assert reply == payload
    assert received == [b"j/monitors"]


def test_socket1_json_empty_reply_is_none(hypr_folder):
    ipc = HyprlandIPC()
    with serve(hypr_folder / ".socket.sock", b""):
        assert ipc.get_socket1_json_reply("clients") is None


def test_socket1_requires_signature(monkeypatch):
    monkeypatch.delenv("HYPRLAND_INSTANCE_SIGNATURE", raising=False)
    with pytest.raises(RuntimeError, match="HYPRLAND_INSTANCE_SIGNATURE"):
        HyprlandIPC().get_socket1_reply("version")


def test_socket1_connect_failure(hypr_folder):
    with pytest.raises(RuntimeError, match="Couldn't connect"):
        HyprlandIPC().get_socket1_reply("version")


def test_listen_relays_events(hypr_folder):
    ipc = HyprlandIPC()
    seen = []
    ipc.register_for_ipc("workspacev2", seen.append)
    lines = b"workspacev2>>2,2\nactivewindow>>kitty,x\nworkspacev2>>5,web\n"
    with serve(hypr_folder / ".socket2.sock", lines, read_request=False):
        ipc.listen()
    assert seen == ["workspacev2>>2,2", "workspacev2>>5,web"]


def test_listen_survives_failing_handler(hypr_folder):
    ipc = HyprlandIPC()
    seen = []

    def broken(event):
        raise ValueError(event)

    ipc.register_for_ipc("urgent", broken)
    ipc.register_for_ipc("urgent", seen.append)
    with serve(hypr_folder / ".socket2.sock", b"urgent>>a\n", read_request=False):
        ipc.listen()
    ipc.register_for_ipc("urgent", seen.append)
    assert seen == []


def test_listen_after_stop_does_not_connect(hypr_folder):
    ipc = HyprlandIPC()
    seen = []
    ipc.register_for_ipc("urgent", seen.append)
    ipc.stop()
    ipc.listen()
    ipc.parse_ipc("urgent>>b")
    assert seen == ["urgent>>b"]