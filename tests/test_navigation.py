from navigation import DEFAULT_WELCOME, NavigationContext, header_link


def test_mounted_clears_slot_on_exit():
    nav = NavigationContext()
    with nav.mounted("/work?c=1"):
        assert nav.parent_path == "/work?c=1"
    assert nav.parent_path is None


def test_mounted_clears_slot_even_when_view_fails():
    nav = NavigationContext()
    try:
        with nav.mounted("/projects"):
            raise RuntimeError("render failed")
    except RuntimeError:
        pass
    assert nav.parent_path is None


def test_last_writer_wins():
    nav = NavigationContext()
    nav.set_parent_path("/")
    nav.set_parent_path("/student?id=3")
    assert nav.parent_path == "/student?id=3"


def test_header_shows_back_link_when_parent_set():
    nav = NavigationContext()
    nav.set_parent_path("/projects")
    assert header_link(nav, "Ada") == ("back", "/projects")


def test_header_greets_user_or_visitor():
    nav = NavigationContext()
    assert header_link(nav, "Ada") == ("welcome", "Welcome, Ada!")
    assert header_link(nav, None) == ("welcome", DEFAULT_WELCOME)
