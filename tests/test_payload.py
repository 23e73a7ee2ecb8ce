import pytest

from wbless.hyprland.payload import WindowCreationPayload


class Manager:
    def __init__(self, uses_title=False):
        self.window_rewrite_uses_title = uses_title
        self.calls = []

    def get_rewrite(self, window_class, window_title):
        self.calls.append((window_class, window_title))
        return f"{window_class}|{window_title}"


def test_from_client_cleans_address_and_workspace():
    payload = WindowCreationPayload.from_client(
        {
            "class": "firefox",
            "title": "News",
            "address": "0x55aa",
            "workspace": {"name": "special:scratch pad"},
        }
    )
    assert payload.address == "55aa"
    assert payload.workspace_name == "scratch"
    assert payload.window == ("firefox", "News")


def test_address_without_prefix_is_kept():
    payload = WindowCreationPayload("1", "beef", window_repr="term")
    assert payload.address == "beef"
    assert payload.workspace_name == "1"


def test_repr_payload_renders_itself():
    manager = Manager()
    payload = WindowCreationPayload("2", "abc", window_repr="editor")
    assert payload.render_repr(manager) == "editor"
    assert payload.is_empty(manager) is False
    assert manager.calls == []


def test_empty_repr_is_empty():
    assert WindowCreationPayload("2", "abc", window_repr="").is_empty(Manager()) is True


def test_class_and_title_use_rewrite():
    manager = Manager()
    payload = WindowCreationPayload("3", "0x1", window_class="kitty", window_title="shell")
    assert payload.render_repr(manager) == manager.get_rewrite("kitty", "shell")
    assert ("kitty", "shell") in manager.calls


def test_title_only_depends_on_rewrite_rules():
    payload = WindowCreationPayload("3", "1", window_class="", window_title="shell")
    assert payload.is_empty(Manager(uses_title=False)) is True
    assert payload.is_empty(Manager(uses_title=True)) is False


def test_no_class_no_title_is_empty():
    payload = WindowCreationPayload("3", "1", window_class="", window_title="")
    assert payload.is_empty(Manager(uses_title=True)) is True


def test_increment_returns_previous_count():
    payload = WindowCreationPayload("1", "1", window_repr="x")
    counts = [payload.increment_time_spent_uncreated() for _ in range(3)]
    assert counts == list(range(3))
    assert payload.time_spent_uncreated == 3


def test_move_to_workspace_is_verbatim():
    payload = WindowCreationPayload("1", "1", window_repr="x")
    payload.move_to_workspace("special:other place")
    assert payload.workspace_name == "special:other place"


def test_repr_and_class_together_rejected():
    with pytest.raises(ValueError):
        WindowCreationPayload("1", "1", window_repr="x", window_class="y")