"""Tests for cancellation tokens."""

import threading

import pytest

from repodeck.cancel import CancelToken, check
from repodeck.errors import CancelledError


class TestCancelToken:
    def test_not_cancelled_initially(self):
        token = CancelToken()
        assert not token.cancelled
        token.raise_if_cancelled("scan")

    def test_cancel(self):
        token = CancelToken()
        token.cancel()
        with pytest.raises(CancelledError) as exc_info:
            token.raise_if_cancelled("scan", "/repos")
        assert exc_info.value.operation == "scan"
        assert exc_info.value.path == "/repos"

    def test_parent_cancels_child(self):
        parent = CancelToken()
        child = CancelToken(parent=parent)
        parent.cancel()
        assert child.cancelled

    def test_child_does_not_cancel_parent(self):
        parent = CancelToken()
        child = CancelToken(parent=parent)
        child.cancel()
        assert not parent.cancelled

    def test_cancel_from_another_thread(self):
        token = CancelToken()
        thread = threading.Thread(target=token.cancel)
        thread.start()
        thread.join()
        assert token.cancelled


def test_check_without_token():
    check(None, "history")


def test_check_with_cancelled_token():
    token = CancelToken()
    token.cancel()
    with pytest.raises(CancelledError):
        check(token, "history")
