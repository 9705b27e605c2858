import threading

from chatgate.usermgr import UserSessions


def test_set_and_get():
    users = UserSessions()
    session = object()
    users.set_session(5, session)
    assert users.get_session(5) is session
    assert 5 in users


def test_missing_is_none():
    assert UserSessions().get_session(1) is None


def test_overwrite():
    users = UserSessions()
    first, second = object(), object()
    users.set_session(1, first)
    users.set_session(1, second)
    assert users.get_session(1) is second
    assert len(users) == 1


def test_remove():
    users = UserSessions()
    users.set_session(2, object())
    users.remove_session(2)
    assert users.get_session(2) is None
    assert len(users) == 0


def test_remove_unknown_is_noop():
    users = UserSessions()
    users.set_session(3, "s")
    users.remove_session(99)
    assert users.get_session(3) == "s"


def test_concurrent_registration():
    users = UserSessions()
    threads = [
        threading.Thread(target=users.set_session, args=(uid, f"s{uid}"))
        for uid in range(50)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(users) == 50
    assert users.get_session(17) == "s17"