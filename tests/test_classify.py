"""Tests for status classification."""

from repodeck.classify import categories_for, classify_entries
from repodeck.models import RepoStatus, StatusCategory, StatusFlag
from repodeck.vcs.protocol import RawStatusEntry


def entry(path: str, flags: StatusFlag, origin: str | None = None) -> RawStatusEntry:
    return RawStatusEntry(path=path, flags=flags, rename_origin=origin)


class TestCategoriesFor:
    """Tests for flag-to-category mapping."""

    def test_every_index_flag_is_staged(self):
        """Each INDEX_* flag alone classifies as staged."""
        for flag in (
            StatusFlag.INDEX_NEW,
            StatusFlag.INDEX_MODIFIED,
            StatusFlag.INDEX_DELETED,
            StatusFlag.INDEX_RENAMED,
            StatusFlag.INDEX_TYPECHANGE,
        ):
            assert categories_for(flag) == {StatusCategory.STAGED}

    def test_worktree_flags_are_unstaged(self):
        """Worktree changes other than WT_NEW are unstaged."""
        for flag in (
            StatusFlag.WT_MODIFIED,
            StatusFlag.WT_DELETED,
            StatusFlag.WT_RENAMED,
            StatusFlag.WT_TYPECHANGE,
        ):
            assert categories_for(flag) == {StatusCategory.UNSTAGED}

    def test_wt_new_is_untracked_only(self):
        """WT_NEW is untracked, not unstaged."""
        assert categories_for(StatusFlag.WT_NEW) == {StatusCategory.UNTRACKED}

    def test_conflicted(self):
        assert categories_for(StatusFlag.CONFLICTED) == {StatusCategory.CONFLICTED}

    def test_no_flags(self):
        assert categories_for(StatusFlag.NONE) == frozenset()


class TestClassifyEntries:
    """Tests for classify_entries."""

    def test_empty_input(self):
        """No entries gives an empty status."""
        status = classify_entries([])
        assert status == RepoStatus()
        assert status.total_count() == 0
        assert not status.has_changes()

    def test_partially_staged_path_in_both(self):
        """A new file modified again after staging is staged and unstaged."""
        status = classify_entries([entry("a.txt", StatusFlag.INDEX_NEW | StatusFlag.WT_MODIFIED)])

        assert [i.path for i in status.staged] == ["a.txt"]
        assert [i.path for i in status.unstaged] == ["a.txt"]
        assert status.untracked == []
        assert status.staged[0].categories == {StatusCategory.STAGED, StatusCategory.UNSTAGED}
        assert status.total_count() == 2

    def test_conflicted_may_also_be_staged(self):
        """Conflict flags combine with other categories."""
        status = classify_entries(
            [entry("c.txt", StatusFlag.CONFLICTED | StatusFlag.INDEX_MODIFIED)]
        )
        assert [i.path for i in status.conflicted] == ["c.txt"]
        assert [i.path for i in status.staged] == ["c.txt"]

    def test_input_order_preserved(self):
        """Items keep backend order inside each category."""
        status = classify_entries(
            [
                entry("z.txt", StatusFlag.WT_MODIFIED),
                entry("b.txt", StatusFlag.WT_NEW),
                entry("a.txt", StatusFlag.WT_MODIFIED),
                entry("m.txt", StatusFlag.INDEX_MODIFIED),
                entry("c.txt", StatusFlag.WT_NEW),
            ]
        )
        assert [i.path for i in status.unstaged] == ["z.txt", "a.txt"]
        assert [i.path for i in status.untracked] == ["b.txt", "c.txt"]
        assert [i.path for i in status.staged] == ["m.txt"]

    def test_rename_origin_becomes_old_path(self):
        """old_path comes from the backend's rename origin."""
        status = classify_entries([entry("new.txt", StatusFlag.INDEX_RENAMED, origin="old.txt")])
        assert status.staged[0].old_path == "old.txt"

    def test_unchanged_entries_skipped(self):
        """Entries without change flags are not reported."""
        status = classify_entries([entry("same.txt", StatusFlag.NONE)])
        assert not status.has_changes()

    def test_total_count_is_sum_of_lists(self):
        """total_count() always equals the four lengths summed."""
        status = classify_entries(
            [
                entry("a", StatusFlag.INDEX_NEW | StatusFlag.WT_MODIFIED),
                entry("b", StatusFlag.WT_NEW),
                entry("c", StatusFlag.CONFLICTED),
                entry("d", StatusFlag.WT_DELETED),
            ]
        )
        expected = (
            len(status.staged)
            + len(status.unstaged)
            + len(status.untracked)
            + len(status.conflicted)
        )
        assert status.total_count() == expected == 5
        assert status.has_changes()


class TestStatusFlagNames:
    """Tests for StatusFlag.names."""

    def test_names_in_declaration_order(self):
        flags = StatusFlag.WT_MODIFIED | StatusFlag.INDEX_NEW
        assert flags.names() == ["index_new", "wt_modified"]

    def test_none_has_no_names(self):
        assert StatusFlag.NONE.names() == []
